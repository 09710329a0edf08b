# controle_estoque/usecases/alertas.py
"""
UC: Alertas de estoque baixo.

- AlertEvaluator: recalcula a lista de alertas a partir do snapshot de
  produtos, preservando a marcação de lido por id de alerta.
- AlertMonitor: dispara o recálculo periodicamente e a cada sinal de mudança
  do ledger; os dois gatilhos chamam o mesmo `refresh`.

Regras do recálculo:
1) candidatos: produtos com mínimo definido e ``current_stock <= min_stock``;
2) id do alerta = ``"alert-" + product_id``;
3) ``is_read`` só é mantido para ids que continuam na lista;
4) a lista é trocada por inteiro. Ids que não estavam no recálculo anterior
   (em memória) são "novos" e vão para o notificador.
"""

from __future__ import annotations

import threading
from datetime import datetime
from typing import Callable, Dict, List, Optional, Set

from controle_estoque.config import DEFAULTS
from controle_estoque.domain.models import LowStockAlert, Snapshot
from controle_estoque.domain.policies import alert_id_for, is_alert_candidate
from controle_estoque.infra.logger import log_alert, log_system_event


class AlertEvaluator:
    def __init__(self, notifier=None, clock: Callable[[], datetime] = datetime.now):
        self.notifier = notifier
        self._clock = clock
        self._lock = threading.Lock()
        self._alerts: List[LowStockAlert] = []
        self._read_ids: Set[str] = set()

    @property
    def alerts(self) -> List[LowStockAlert]:
        return list(self._alerts)

    @property
    def unread_count(self) -> int:
        return sum(1 for a in self._alerts if not a.is_read)

    def refresh(self, snapshot: Snapshot) -> List[LowStockAlert]:
        """Recalcula os alertas e retorna os que apareceram neste recálculo."""
        with self._lock:
            groups = {g.id: g for g in snapshot.groups}
            now = self._clock()
            previous: Dict[str, LowStockAlert] = {a.id: a for a in self._alerts}

            alerts: List[LowStockAlert] = []
            for p in snapshot.products:
                if not is_alert_candidate(p.current_stock, p.min_stock):
                    continue
                alert_id = alert_id_for(p.id)
                group = groups.get(p.group_id)
                old = previous.get(alert_id)
                alerts.append(
                    LowStockAlert(
                        id=alert_id,
                        product_id=p.id,
                        product_name=p.name,
                        product_code=p.code,
                        current_stock=p.current_stock,
                        min_stock=p.min_stock,
                        group_name=group.name if group else DEFAULTS.default_group_name,
                        group_color=group.color if group else DEFAULTS.default_group_color,
                        created_at=old.created_at if old else now,
                        is_read=alert_id in self._read_ids,
                    )
                )

            current_ids = {a.id for a in alerts}
            self._read_ids &= current_ids
            new_alerts = [a for a in alerts if a.id not in previous]
            self._alerts = alerts

        log_system_event("alerts_refresh", {"total": len(alerts), "new": len(new_alerts)})
        for a in new_alerts:
            log_alert("new", a.id, product=a.product_code, current_stock=a.current_stock)
            self._dispatch(a)
        return new_alerts

    def _dispatch(self, alert: LowStockAlert) -> None:
        if self.notifier is None:
            return
        try:
            self.notifier.notify(alert.product_name, alert.current_stock, alert.min_stock)
        except Exception as e:
            # entrega é best-effort: falha do notificador não interrompe o recálculo
            log_alert("notify_failed", alert.id, error=str(e))

    def mark_as_read(self, alert_id: str) -> None:
        with self._lock:
            for a in self._alerts:
                if a.id == alert_id:
                    a.is_read = True
                    self._read_ids.add(alert_id)
                    log_alert("read", alert_id)
                    return

    def mark_all_as_read(self) -> None:
        with self._lock:
            for a in self._alerts:
                a.is_read = True
                self._read_ids.add(a.id)
        log_alert("read_all", "*", total=len(self._alerts))


class AlertMonitor:
    """Mantém o `AlertEvaluator` atualizado a partir de um `LedgerStore`.

    Args:
        store: ledger observado (precisa de ``snapshot()`` e ``subscribe()``).
        evaluator: avaliador a atualizar.
        interval: segundos entre recálculos periódicos (``None`` desliga o timer).
    """

    def __init__(self, store, evaluator: AlertEvaluator,
                 interval: Optional[float] = DEFAULTS.alert_refresh_seconds):
        self.store = store
        self.evaluator = evaluator
        self.interval = interval
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._unsubscribe: Optional[Callable[[], None]] = None

    def refresh(self) -> List[LowStockAlert]:
        return self.evaluator.refresh(self.store.snapshot())

    def _on_change(self) -> None:
        self.refresh()

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            try:
                self.refresh()
            except Exception as e:
                log_system_event("alert_monitor_error", {"error": str(e)}, level="error")

    def start(self) -> List[LowStockAlert]:
        """Faz o primeiro recálculo, assina as mudanças e sobe o timer."""
        if self._unsubscribe is not None:
            return []
        first = self.refresh()
        self._unsubscribe = self.store.subscribe(self._on_change)
        if self.interval:
            self._stop.clear()
            self._thread = threading.Thread(target=self._run, name="alert-monitor", daemon=True)
            self._thread.start()
        log_system_event("alert_monitor_start", {"interval": self.interval})
        return first

    def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=5)
            self._thread = None
        log_system_event("alert_monitor_stop")

    def __enter__(self) -> "AlertMonitor":
        self.start()
        return self

    def __exit__(self, *exc) -> None:
        self.stop()
