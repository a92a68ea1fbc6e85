"""
Máquina de estados genérica para documentos financieros

Cada familia declara su tabla de transiciones como una lista de Rule. La
tabla es la única fuente de verdad: la legalidad de un evento, los permisos
que ve la interfaz y los estados terminales se derivan de ella.

Una transición es pura: recibe el documento y el contexto, valida, y devuelve
un TransitionResult con el nuevo estado, los cambios a persistir y los efectos
a ejecutar. Nada se muta.
"""

import logging
from datetime import date
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from docflow.core.exceptions import ClampedValueWarning, InvalidTransitionError, StaleDocumentError
from docflow.modules.lifecycle.schemas import (
    DocumentFamily, FinancialDocument, Permissions, TransitionContext, TransitionResult
)

logger = logging.getLogger(__name__)


class Outcome:
    """Lo que produce la acción de una regla"""

    def __init__(
        self,
        status=None,
        effects: Optional[List[Any]] = None,
        changes: Optional[Dict[str, Any]] = None,
        applications: Optional[List[Any]] = None,
        warnings: Optional[List[ClampedValueWarning]] = None
    ):
        self.status = status
        self.effects = effects or []
        self.changes = changes or {}
        self.applications = applications or []
        self.warnings = warnings or []


class Rule:
    """
    Fila de la tabla de transiciones

    Args:
        source: Estado de origen
        event: Evento que dispara la regla
        targets: Estado destino, o tupla de destinos posibles cuando la acción
            elige entre ellos (ej. pago parcial o total). None elimina el documento.
        action: fn(document, context) -> Outcome
        validate: fn(document, context), lanza ValidationError si el evento no procede
        condition: fn(document, as_of) -> bool, solo para reglas automáticas
        automatic: La regla la dispara el sistema (reconcile), no el usuario
    """

    def __init__(
        self,
        source,
        event,
        targets,
        action: Optional[Callable[[Any, TransitionContext], Outcome]] = None,
        validate: Optional[Callable[[Any, TransitionContext], None]] = None,
        condition: Optional[Callable[[Any, date], bool]] = None,
        automatic: bool = False
    ):
        self.source = source
        self.event = event
        self.targets = tuple(targets) if isinstance(targets, (tuple, list)) else (targets,)
        self.action = action
        self.validate = validate
        self.condition = condition
        self.automatic = automatic

    @property
    def deletes(self) -> bool:
        return self.targets == (None,)

    def __repr__(self):
        targets = [t.value if t is not None else None for t in self.targets]
        return f"Rule({self.source.value} --{self.event.value}--> {targets})"


def rules(sources: Iterable, event, targets, **kwargs) -> List[Rule]:
    """La misma regla desde varios estados de origen"""
    return [Rule(source, event, targets, **kwargs) for source in sources]


class StateMachine:
    """
    Interpreta la tabla de transiciones de una familia

    Args:
        family: Familia de documentos
        states: Enum de estados
        events: Enum de eventos
        rules: Tabla de transiciones
        initial: Estado con el que se crea el documento
    """

    def __init__(self, family: DocumentFamily, states, events, rules: Sequence[Rule], initial):
        self.family = family
        self.states = states
        self.events = events
        self.initial = initial
        self._rules: List[Rule] = list(rules)
        self._table: Dict[Tuple[Any, Any], Rule] = {}

        for rule in self._rules:
            key = (rule.source, rule.event)
            if key in self._table:
                raise ValueError(f"{family.value}: regla duplicada para {rule.source.value}/{rule.event.value}")
            if rule.source not in states or rule.event not in events:
                raise ValueError(f"{family.value}: regla con estado o evento ajeno: {rule!r}")
            for target in rule.targets:
                if target is not None and target not in states:
                    raise ValueError(f"{family.value}: destino ajeno en {rule!r}")
            if rule.automatic and rule.condition is None:
                raise ValueError(f"{family.value}: la regla automática {rule!r} necesita condición")
            self._table[key] = rule

    # ===== CONSULTAS =====

    def table(self) -> List[Rule]:
        return list(self._rules)

    def pairs(self) -> set:
        return set(self._table.keys())

    def rules_from(self, status) -> List[Rule]:
        status = self._state(status)
        return [rule for rule in self._rules if rule.source == status]

    def is_terminal(self, status) -> bool:
        return not self.rules_from(status)

    def permissions_for(self, status) -> Permissions:
        """Banderas allow_<evento> para la interfaz, derivadas de la tabla"""
        status = self._state(status)
        available = [rule.event for rule in self.rules_from(status) if not rule.automatic]
        flags = {f"allow_{event.value}": event in available for event in self.events}
        return Permissions(
            family=self.family,
            status=status.value,
            terminal=self.is_terminal(status),
            actions=[event.value for event in available],
            flags=flags
        )

    def find(self, status, event) -> Rule:
        status = self._state(status)
        event = self._event(event, status)
        rule = self._table.get((status, event))
        if rule is None:
            raise InvalidTransitionError(self.family.value, status.value, event.value)
        return rule

    # ===== TRANSICIONES =====

    def transition(self, document: FinancialDocument, event, context: TransitionContext) -> TransitionResult:
        """
        Aplicar un evento solicitado por el usuario

        Raises:
            StaleDocumentError: la versión esperada no coincide con la del documento
            InvalidTransitionError: el evento no está definido desde el estado actual
            ValidationError: el evento no procede con los datos recibidos
        """
        if context.expected_version != document.version:
            raise StaleDocumentError(context.expected_version, document.version)

        rule = self.find(document.status, event)
        if rule.automatic:
            raise InvalidTransitionError(
                self.family.value, rule.source.value, rule.event.value,
                f"'{rule.event.value}' es una transición automática de {self.family.value}; se ejecuta con reconcile"
            )
        return self._execute(rule, document, context)

    def reconcile(self, document: FinancialDocument, as_of: date) -> Optional[TransitionResult]:
        """Ejecutar la primera regla automática cuya condición se cumple, si hay alguna"""
        for rule in self.rules_from(document.status):
            if rule.automatic and rule.condition(document, as_of):
                context = TransitionContext(expected_version=document.version, occurred_on=as_of)
                return self._execute(rule, document, context)
        return None

    def _execute(self, rule: Rule, document: FinancialDocument, context: TransitionContext) -> TransitionResult:
        if rule.validate is not None:
            rule.validate(document, context)

        outcome = rule.action(document, context) if rule.action is not None else Outcome()

        if outcome.status is not None:
            target = self._state(outcome.status)
            if target not in rule.targets:
                raise RuntimeError(f"{rule!r} produjo un destino fuera de la tabla: {target.value}")
        elif len(rule.targets) == 1:
            target = rule.targets[0]
        else:
            raise RuntimeError(f"{rule!r} tiene varios destinos y la acción no eligió uno")

        new_status = target.value if target is not None else None
        logger.info(
            f"{self.family.value} {document.id}: {rule.source.value} --{rule.event.value}--> "
            f"{new_status or 'eliminado'} (v{document.version} -> v{document.version + 1}, "
            f"{len(outcome.effects)} efecto(s))"
        )

        return TransitionResult(
            family=self.family,
            document_id=document.id,
            event=rule.event.value,
            previous_status=rule.source.value,
            new_status=new_status,
            deleted=target is None,
            expected_version=document.version,
            new_version=document.version + 1,
            effects=outcome.effects,
            changes=outcome.changes,
            applications=outcome.applications,
            warnings=outcome.warnings
        )

    # ===== HELPERS =====

    def _state(self, status):
        try:
            return self.states(status)
        except ValueError:
            raise InvalidTransitionError(
                self.family.value, str(status), "-",
                f"Estado desconocido para {self.family.value}: '{status}'"
            )

    def _event(self, event, status):
        try:
            return self.events(event)
        except ValueError:
            raise InvalidTransitionError(
                self.family.value, status.value, str(event),
                f"Evento desconocido para {self.family.value}: '{event}'"
            )
