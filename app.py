# app.py
"""
Entrypoint da aplicação.

Uso:
  python app.py migrate --db estoque.db
  python app.py seed
  python app.py dashboard
  python app.py mov registrar NF-F28 entrada 100 --empresa "Fornecedor ABC"
  python app.py alertas monitorar
  python app.py rel movimentacoes --inicio 2025-01-01 --fim 2025-01-31
"""

from controle_estoque.adapters.cli import main

if __name__ == "__main__":
    main()
