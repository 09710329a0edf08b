# controle_estoque/adapters/cli.py
"""
CLI do controle de estoque (Typer).

Comandos principais:
- migrate                       -> aplica migrações
- seed                          -> grava os dados de demonstração
- dashboard                     -> indicadores gerais
- grupos listar/criar/editar/excluir/painel
- produtos listar/criar/editar/excluir
- mov registrar/listar/lote     -> movimentações (entrada/saída)
- alertas listar/monitorar      -> alertas de estoque baixo
- rel estoque/movimentacoes/estoque-baixo
"""

from __future__ import annotations

import json
import time
from contextlib import contextmanager
from dataclasses import asdict, is_dataclass
from datetime import date, datetime
from typing import Any, Dict, List, Optional

import typer
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich import box

from controle_estoque.config import DB_PATH, DEFAULTS
from controle_estoque.domain.errors import EstoqueError, NotFoundError
from controle_estoque.domain.policies import stock_status
from controle_estoque.infra.migrations import apply_migrations
from controle_estoque.infra.seed import seed_database
from controle_estoque.adapters.notificacoes import ConsoleNotifier
from controle_estoque.adapters.parsers import parse_numero, parse_tipo
from controle_estoque.usecases.alertas import AlertEvaluator, AlertMonitor
from controle_estoque.usecases.consultas import (
    SORT_FIELDS,
    dashboard_stats,
    filter_movements,
    group_rollup,
    search_products,
)
from controle_estoque.usecases.ledger import LedgerStore
from controle_estoque.usecases.movimentacoes_lote import run_movimentacoes_lote
from controle_estoque.usecases.relatorios import (
    relatorio_estoque,
    relatorio_estoque_baixo,
    relatorio_movimentacoes,
)


app = typer.Typer(help="Controle de Estoque — CLI")
console = Console()

DB_OPTION = typer.Option(DB_PATH, "--db", help="Caminho do SQLite")
JSON_OPTION = typer.Option(False, "--json", help="Saída em JSON")

STATUS_LABEL = {
    "zero": "[bold red]Zerado[/]",
    "low": "[bold yellow]Baixo[/]",
    "ok": "[bold green]OK[/]",
}


# -----------------------
# util
# -----------------------

def _fmt_num(val: Any) -> str:
    """Número no formato pt-BR (milhar com ponto); inteiros sem casas decimais."""
    if val is None:
        return "-"
    if float(val).is_integer():
        return f"{int(val):,}".replace(",", ".")
    return f"{val:,.2f}".replace(",", "X").replace(".", ",").replace("X", ".")


def _json_default(obj):
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if is_dataclass(obj):
        return asdict(obj)
    raise TypeError(f"não serializável: {type(obj)}")


def _print_json(obj) -> None:
    typer.echo(json.dumps(obj, ensure_ascii=False, indent=2, default=_json_default))


def _display_table(rows: List[Dict[str, Any]], title: str = "Resultado") -> None:
    """Exibe uma lista de dicts em tabela Rich."""
    if not rows:
        console.print(Panel("Nenhum dado encontrado", title=title, border_style="yellow"))
        return

    table = Table(title=title, box=box.ROUNDED)
    columns = list(rows[0].keys())
    for column in columns:
        if column.lower() in ["estoque", "minimo", "quantidade", "anterior", "novo", "deficit"]:
            table.add_column(column, justify="right")
        elif column.lower() in ["data", "status", "tipo"]:
            table.add_column(column, justify="center")
        else:
            table.add_column(column)

    for row in rows:
        values = []
        for col in columns:
            val = row.get(col, "")
            if isinstance(val, (int, float)) and not isinstance(val, bool):
                values.append(_fmt_num(val))
            elif isinstance(val, datetime):
                values.append(val.strftime("%d/%m/%Y %H:%M"))
            elif val is None:
                values.append("-")
            else:
                values.append(str(val))
        table.add_row(*values)

    console.print(table)


def _parse_date(val: Optional[str]) -> Optional[date]:
    if not val:
        return None
    for fmt in ("%Y-%m-%d", "%d/%m/%Y"):
        try:
            return datetime.strptime(val, fmt).date()
        except ValueError:
            continue
    raise typer.BadParameter(f"data inválida: {val} (use YYYY-MM-DD ou DD/MM/AAAA)")


@contextmanager
def _erros():
    """Converte erros do domínio em mensagem + código de saída 1."""
    try:
        yield
    except EstoqueError as e:
        console.print(f"[bold red]Erro:[/] {e}")
        raise typer.Exit(code=1)


def _store(db_path: str) -> LedgerStore:
    return LedgerStore.open(db_path)


def _resolve_group(store: LedgerStore, ref: Optional[str]) -> Optional[str]:
    """Aceita id ou nome do grupo (sem diferenciar maiúsculas)."""
    if ref is None:
        return None
    for g in store.groups:
        if g.id == ref or g.name.lower() == ref.strip().lower():
            return g.id
    raise NotFoundError("Grupo", ref)


def _resolve_product(store: LedgerStore, ref: str):
    product = store.find_product_by_code(ref)
    if product is not None:
        return product
    return store.get_product(ref)


def _product_rows(store: LedgerStore, products) -> List[Dict[str, Any]]:
    groups = {g.id: g.name for g in store.groups}
    return [
        {
            "codigo": p.code,
            "produto": p.name,
            "grupo": groups.get(p.group_id, DEFAULTS.default_group_name),
            "estoque": p.current_stock,
            "unidade": p.unit,
            "minimo": p.min_stock,
            "status": STATUS_LABEL[stock_status(p.current_stock, p.min_stock)],
        }
        for p in products
    ]


def _movement_rows(store: LedgerStore, movements) -> List[Dict[str, Any]]:
    names = {p.id: p.name for p in store.products}
    return [
        {
            "data": m.created_at,
            "tipo": "[green]Entrada[/]" if m.type == "entrada" else "[red]Saída[/]",
            "produto": names.get(m.product_id, "N/A"),
            "quantidade": m.quantity,
            "anterior": m.previous_stock,
            "novo": m.new_stock,
            "empresa": m.company,
            "obs": m.notes,
        }
        for m in movements
    ]


# -----------------------
# comandos de infra
# -----------------------

@app.command("migrate")
def cmd_migrate(db_path: str = DB_OPTION):
    """Aplica as migrações do schema."""
    apply_migrations(db_path)
    typer.echo(f">> Migrações aplicadas em: {db_path}")


@app.command("seed")
def cmd_seed(
    force: bool = typer.Option(False, "--force", help="Apaga os dados existentes antes"),
    db_path: str = DB_OPTION,
):
    """Grava os dados de demonstração no banco."""
    try:
        counts = seed_database(db_path, force=force)
    except RuntimeError as e:
        console.print(f"[bold red]Erro:[/] {e}")
        raise typer.Exit(code=1)
    typer.echo(
        f">> Demonstração carregada: {counts['grupos']} grupos, "
        f"{counts['produtos']} produtos, {counts['movimentacoes']} movimentações."
    )


@app.command("dashboard")
def cmd_dashboard(as_json: bool = JSON_OPTION, db_path: str = DB_OPTION):
    """Indicadores gerais do estoque."""
    with _erros():
        store = _store(db_path)
        stats = dashboard_stats(store.snapshot())
    if as_json:
        _print_json(stats)
        return
    linhas = [
        f"Produtos: {_fmt_num(stats.total_products)}",
        f"Grupos: {_fmt_num(stats.total_groups)}",
        f"Estoque total: {_fmt_num(stats.total_stock)}",
        f"Entradas: [green]+{_fmt_num(stats.total_entries)}[/]",
        f"Saídas: [yellow]-{_fmt_num(stats.total_exits)}[/]",
    ]
    if stats.low_stock_products > 0:
        linhas.append(f"[bold red]Estoque baixo: {stats.low_stock_products}[/]")
    console.print(Panel("\n".join(linhas), title="Dashboard"))
    _display_table(_movement_rows(store, stats.recent_movements), title="Movimentações Recentes")


# -----------------------
# grupos
# -----------------------

grupos_app = typer.Typer(help="Grupos de produtos")
app.add_typer(grupos_app, name="grupos")


@grupos_app.command("listar")
def cmd_grupos_listar(as_json: bool = JSON_OPTION, db_path: str = DB_OPTION):
    """Lista os grupos com total de produtos e estoque."""
    with _erros():
        store = _store(db_path)
    rows = []
    for g in store.groups:
        produtos = [p for p in store.products if p.group_id == g.id]
        rows.append({
            "id": g.id,
            "grupo": g.name,
            "descricao": g.description,
            "cor": g.color,
            "produtos": len(produtos),
            "estoque": sum(p.current_stock for p in produtos),
        })
    if as_json:
        _print_json(rows)
    else:
        _display_table(rows, title="Grupos")


@grupos_app.command("criar")
def cmd_grupos_criar(
    nome: str = typer.Argument(..., help="Nome do grupo"),
    descricao: Optional[str] = typer.Option(None, help="Descrição"),
    cor: str = typer.Option(DEFAULTS.default_group_color, help="Cor (ex.: #22c55e)"),
    db_path: str = DB_OPTION,
):
    """Cria um grupo de produtos."""
    with _erros():
        group = _store(db_path).add_group(nome, descricao, cor)
    typer.echo(f">> Grupo criado: {group.name} ({group.id})")


@grupos_app.command("editar")
def cmd_grupos_editar(
    grupo: str = typer.Argument(..., help="Id ou nome do grupo"),
    nome: Optional[str] = typer.Option(None),
    descricao: Optional[str] = typer.Option(None),
    cor: Optional[str] = typer.Option(None),
    db_path: str = DB_OPTION,
):
    """Altera nome, descrição ou cor de um grupo."""
    fields = {k: v for k, v in {"name": nome, "description": descricao, "color": cor}.items() if v is not None}
    if not fields:
        typer.echo("Nada a alterar. Informe pelo menos um campo.")
        raise typer.Exit(code=1)
    with _erros():
        store = _store(db_path)
        group = store.update_group(_resolve_group(store, grupo), **fields)
    typer.echo(f">> Grupo atualizado: {group.name}")


@grupos_app.command("excluir")
def cmd_grupos_excluir(
    grupo: str = typer.Argument(..., help="Id ou nome do grupo"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Não pedir confirmação"),
    db_path: str = DB_OPTION,
):
    """Exclui o grupo, seus produtos e as movimentações desses produtos."""
    with _erros():
        store = _store(db_path)
        group_id = _resolve_group(store, grupo)
        n = sum(1 for p in store.products if p.group_id == group_id)
        if not yes:
            typer.confirm(f"Excluir o grupo e {n} produto(s)?", abort=True)
        store.delete_group(group_id)
    typer.echo(">> Grupo excluído.")


@grupos_app.command("painel")
def cmd_grupos_painel(
    grupo: Optional[str] = typer.Argument(None, help="Id ou nome do grupo (padrão: todos)"),
    as_json: bool = JSON_OPTION,
    db_path: str = DB_OPTION,
):
    """Painel por grupo: estoque, entradas, saídas, estoque baixo e top produtos."""
    with _erros():
        store = _store(db_path)
        snap = store.snapshot()
        ids = [_resolve_group(store, grupo)] if grupo else [g.id for g in snap.groups]
        rollups = [group_rollup(snap, gid) for gid in ids]
    if as_json:
        _print_json(rollups)
        return
    for r in rollups:
        style = "red" if r.low_stock_count > 0 else "green"
        console.print(Panel(
            f"Estoque total: {_fmt_num(r.total_stock)}\n"
            f"Entradas: [green]+{_fmt_num(r.entries)}[/]\n"
            f"Saídas: [yellow]-{_fmt_num(r.exits)}[/]\n"
            f"Estoque baixo: [{style}]{r.low_stock_count}[/]",
            title=f"{r.group.name} ({len(r.products)} produtos)",
        ))
        _display_table(
            [{"produto": p.name, "estoque": p.current_stock} for p in r.chart_data],
            title="Maiores estoques",
        )


# -----------------------
# produtos
# -----------------------

produtos_app = typer.Typer(help="Produtos")
app.add_typer(produtos_app, name="produtos")


@produtos_app.command("listar")
def cmd_produtos_listar(
    busca: str = typer.Option("", help="Trecho do nome ou código"),
    grupo: Optional[str] = typer.Option(None, help="Id ou nome do grupo"),
    ordenar: str = typer.Option("name", help=f"Campo: {', '.join(SORT_FIELDS)}"),
    desc: bool = typer.Option(False, "--desc", help="Ordem decrescente"),
    as_json: bool = JSON_OPTION,
    db_path: str = DB_OPTION,
):
    """Lista produtos com busca, filtro por grupo e ordenação."""
    if ordenar not in SORT_FIELDS:
        raise typer.BadParameter(f"use um de: {', '.join(SORT_FIELDS)}", param_hint="--ordenar")
    with _erros():
        store = _store(db_path)
        products = search_products(
            store.products, store.groups, term=busca,
            group_id=_resolve_group(store, grupo), sort_field=ordenar, descending=desc,
        )
    if as_json:
        _print_json(products)
    else:
        _display_table(_product_rows(store, products), title="Produtos")


@produtos_app.command("criar")
def cmd_produtos_criar(
    grupo: str = typer.Option(..., help="Id ou nome do grupo"),
    codigo: str = typer.Option(..., help="Código único do produto"),
    nome: str = typer.Option(..., help="Nome do produto"),
    unidade: str = typer.Option("unidade", help="Unidade (unidade, bag, ton...)"),
    estoque: float = typer.Option(0, help="Estoque inicial"),
    minimo: Optional[float] = typer.Option(None, help="Estoque mínimo"),
    db_path: str = DB_OPTION,
):
    """Cadastra um produto."""
    with _erros():
        store = _store(db_path)
        product = store.add_product(
            _resolve_group(store, grupo), codigo, nome, unidade, estoque, minimo,
        )
    typer.echo(f">> Produto criado: {product.code} - {product.name}")


@produtos_app.command("editar")
def cmd_produtos_editar(
    produto: str = typer.Argument(..., help="Código ou id do produto"),
    grupo: Optional[str] = typer.Option(None),
    codigo: Optional[str] = typer.Option(None),
    nome: Optional[str] = typer.Option(None),
    unidade: Optional[str] = typer.Option(None),
    estoque: Optional[float] = typer.Option(None, help="Sobrescreve o saldo (sem movimentação)"),
    minimo: Optional[float] = typer.Option(None),
    sem_minimo: bool = typer.Option(False, "--sem-minimo", help="Remove o estoque mínimo"),
    db_path: str = DB_OPTION,
):
    """Edita um produto. Para ajustes de saldo auditáveis use `mov registrar`."""
    with _erros():
        store = _store(db_path)
        current = _resolve_product(store, produto)
        fields: Dict[str, Any] = {}
        if grupo is not None:
            fields["group_id"] = _resolve_group(store, grupo)
        for key, val in (("code", codigo), ("name", nome), ("unit", unidade),
                         ("current_stock", estoque), ("min_stock", minimo)):
            if val is not None:
                fields[key] = val
        if sem_minimo:
            fields["min_stock"] = None
        if not fields:
            typer.echo("Nada a alterar. Informe pelo menos um campo.")
            raise typer.Exit(code=1)
        product = store.update_product(current.id, **fields)
    typer.echo(f">> Produto atualizado: {product.code} - {product.name}")


@produtos_app.command("excluir")
def cmd_produtos_excluir(
    produto: str = typer.Argument(..., help="Código ou id do produto"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Não pedir confirmação"),
    db_path: str = DB_OPTION,
):
    """Exclui o produto e suas movimentações."""
    with _erros():
        store = _store(db_path)
        product = _resolve_product(store, produto)
        if not yes:
            typer.confirm(f"Excluir {product.code} e suas movimentações?", abort=True)
        store.delete_product(product.id)
    typer.echo(">> Produto excluído.")


# -----------------------
# movimentações
# -----------------------

mov_app = typer.Typer(help="Movimentações de estoque (entrada/saída)")
app.add_typer(mov_app, name="mov")


@mov_app.command("registrar")
def cmd_mov_registrar(
    produto: str = typer.Argument(..., help="Código ou id do produto"),
    tipo: str = typer.Argument(..., help="entrada | saida"),
    quantidade: str = typer.Argument(..., help="Quantidade (ex.: 100 ou 12,5)"),
    empresa: Optional[str] = typer.Option(None, help="Fornecedor/cliente"),
    obs: Optional[str] = typer.Option(None, help="Observações"),
    db_path: str = DB_OPTION,
):
    """Registra uma entrada ou saída e atualiza o saldo do produto."""
    tipo_norm = parse_tipo(tipo)
    if tipo_norm is None:
        raise typer.BadParameter("use 'entrada' ou 'saida'", param_hint="TIPO")
    qtd = parse_numero(quantidade)
    if qtd is None:
        raise typer.BadParameter(f"quantidade inválida: {quantidade}", param_hint="QUANTIDADE")
    with _erros():
        store = _store(db_path)
        product = _resolve_product(store, produto)
        mov = store.record_movement(product.id, tipo_norm, qtd, company=empresa, notes=obs)
    typer.echo(
        f">> {'Entrada' if mov.type == 'entrada' else 'Saída'} registrada: {product.code} "
        f"{_fmt_num(mov.previous_stock)} -> {_fmt_num(mov.new_stock)}"
    )


@mov_app.command("listar")
def cmd_mov_listar(
    busca: str = typer.Option("", help="Trecho do nome do produto"),
    tipo: Optional[str] = typer.Option(None, help="entrada | saida"),
    as_json: bool = JSON_OPTION,
    db_path: str = DB_OPTION,
):
    """Lista movimentações (mais recentes primeiro)."""
    tipo_norm = None
    if tipo is not None:
        tipo_norm = parse_tipo(tipo)
        if tipo_norm is None:
            raise typer.BadParameter("use 'entrada' ou 'saida'", param_hint="--tipo")
    with _erros():
        store = _store(db_path)
        movements = filter_movements(store.movements, store.products, term=busca, type=tipo_norm)
    if as_json:
        _print_json(movements)
    else:
        _display_table(_movement_rows(store, movements), title="Movimentações")


@mov_app.command("lote")
def cmd_mov_lote(
    path: str = typer.Argument(..., help="Caminho do XLSX de movimentações"),
    db_path: str = DB_OPTION,
):
    """Registra movimentações em lote a partir de um XLSX."""
    with _erros():
        info = run_movimentacoes_lote(_store(db_path), path)
    console.print(Panel(
        f"Total de registros: {info['total']}\n"
        f"Processados com sucesso: {info['sucessos']}\n"
        f"Erros: {len(info['erros'])}",
        title="Movimentações em Lote",
    ))
    if info["erros"]:
        _display_table(info["erros"], title="Erros Encontrados")


# -----------------------
# alertas
# -----------------------

alertas_app = typer.Typer(help="Alertas de estoque baixo")
app.add_typer(alertas_app, name="alertas")


def _alert_rows(alerts) -> List[Dict[str, Any]]:
    return [
        {
            "codigo": a.product_code,
            "produto": a.product_name,
            "grupo": a.group_name,
            "estoque": a.current_stock,
            "minimo": a.min_stock,
        }
        for a in alerts
    ]


@alertas_app.command("listar")
def cmd_alertas_listar(as_json: bool = JSON_OPTION, db_path: str = DB_OPTION):
    """Lista os produtos no ou abaixo do estoque mínimo."""
    with _erros():
        store = _store(db_path)
    evaluator = AlertEvaluator()
    evaluator.refresh(store.snapshot())
    if as_json:
        _print_json(evaluator.alerts)
    else:
        _display_table(_alert_rows(evaluator.alerts), title=f"Alertas ({evaluator.unread_count})")


@alertas_app.command("monitorar")
def cmd_alertas_monitorar(
    intervalo: float = typer.Option(DEFAULTS.alert_refresh_seconds, help="Segundos entre verificações"),
    db_path: str = DB_OPTION,
):
    """Acompanha o banco e avisa quando um produto entra em estoque baixo (Ctrl+C para sair)."""
    with _erros():
        store = _store(db_path)
    evaluator = AlertEvaluator(notifier=ConsoleNotifier(console))
    monitor = AlertMonitor(store, evaluator, interval=None)
    monitor.start()
    console.print(f"[dim]Monitorando {db_path} a cada {intervalo:g}s...[/dim]")
    try:
        while True:
            time.sleep(intervalo)
            with _erros():
                store.reload()
            monitor.refresh()
    except KeyboardInterrupt:
        typer.echo("\nEncerrando monitor.")
    finally:
        monitor.stop()


# -----------------------
# relatórios
# -----------------------

rel_app = typer.Typer(help="Relatórios de estoque")
app.add_typer(rel_app, name="rel")


def _show_report(rel: Dict[str, Any], title: str, as_json: bool) -> None:
    if as_json:
        _print_json({"linhas": rel["linhas"], "resumo": rel["resumo"]})
        return
    _display_table(rel["linhas"], title=title)
    console.print(Panel(
        "\n".join(f"{k.replace('_', ' ')}: {_fmt_num(v)}" for k, v in rel["resumo"].items()),
        title="Resumo",
    ))


@rel_app.command("estoque")
def rel_estoque(
    grupo: Optional[str] = typer.Option(None, help="Id ou nome do grupo"),
    as_json: bool = JSON_OPTION,
    db_path: str = DB_OPTION,
):
    """Relatório de estoque atual."""
    with _erros():
        store = _store(db_path)
        rel = relatorio_estoque(store.snapshot(), _resolve_group(store, grupo))
    _show_report(rel, "Relatório de Estoque Atual", as_json)


@rel_app.command("movimentacoes")
def rel_movimentacoes(
    inicio: Optional[str] = typer.Option(None, help="YYYY-MM-DD (padrão: início do mês)"),
    fim: Optional[str] = typer.Option(None, help="YYYY-MM-DD (padrão: fim do mês)"),
    grupo: Optional[str] = typer.Option(None, help="Id ou nome do grupo"),
    as_json: bool = JSON_OPTION,
    db_path: str = DB_OPTION,
):
    """Relatório de movimentações no período."""
    with _erros():
        store = _store(db_path)
        rel = relatorio_movimentacoes(
            store.snapshot(), _parse_date(inicio), _parse_date(fim), _resolve_group(store, grupo),
        )
    ini, end = rel["periodo"]
    _show_report(rel, f"Movimentações ({ini:%d/%m/%Y} a {end:%d/%m/%Y})", as_json)


@rel_app.command("estoque-baixo")
def rel_estoque_baixo(
    grupo: Optional[str] = typer.Option(None, help="Id ou nome do grupo"),
    as_json: bool = JSON_OPTION,
    db_path: str = DB_OPTION,
):
    """Relatório de produtos abaixo do estoque mínimo."""
    with _erros():
        store = _store(db_path)
        rel = relatorio_estoque_baixo(store.snapshot(), _resolve_group(store, grupo))
    _show_report(rel, "Relatório de Estoque Baixo", as_json)


# Entry point opcional:
def main():
    app()


if __name__ == "__main__":
    main()
