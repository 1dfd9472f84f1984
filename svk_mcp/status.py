"""
Status Aggregator
=================
Turns raw workflow state descriptors into one normalized status record each.

Phase resolution is looked up in PHASE_STRATEGIES by workflow kind. Kinds
with a declared phase order get an OrderedPhaseStrategy; anything else falls
through to the wildcard "*" entry (GenericPhaseStrategy). Adding a workflow
kind is a registry addition:

    register_strategy("new-skill", OrderedPhaseStrategy(["plan", "build"]))
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from .constants import (
    INITIALIZING,
    KNOWN_PHASES,
    NOT_STARTED,
    PHASE_COMPLETE,
    PHASE_IN_PROGRESS,
    PHASE_PENDING,
)
from .scanner import WorkflowStateDescriptor, count_archived_runs, scan_workflow_states

logger = logging.getLogger("SvkStatus")

WILDCARD = "*"


@dataclass
class PhaseResolution:
    phase: str
    status: str


@dataclass
class NormalizedStatus:
    workflow_kind: str
    current_phase: str
    phase_status: str
    last_updated: str
    phase_detail: Dict[str, Any] = field(default_factory=dict)
    recommended_next_command: Optional[str] = None
    state_file: str = ""

    def to_dict(self) -> dict:
        return {
            "workflow_kind": self.workflow_kind,
            "current_phase": self.current_phase,
            "phase_status": self.phase_status,
            "phase_detail": self.phase_detail,
            "last_updated": self.last_updated,
            "recommended_next_command": self.recommended_next_command,
            "state_file": self.state_file,
        }


def _phase_status(value) -> Optional[str]:
    if isinstance(value, dict):
        status = value.get("status")
        return status if isinstance(status, str) else None
    if isinstance(value, str):
        return value
    return None


# =============================================================================
# PHASE RESOLUTION STRATEGIES
# =============================================================================

class PhaseStrategy:
    """Resolves the current phase from a `phases` mapping."""

    def resolve(self, phases: Dict[str, Any]) -> PhaseResolution:
        raise NotImplementedError


class OrderedPhaseStrategy(PhaseStrategy):
    """
    Closed, ordered phase list.

    First phase in progress wins, else the last complete phase in declared
    order, else "not started". Phases outside the declared list are ignored.
    """

    def __init__(self, phase_order: List[str]):
        self.phase_order = list(phase_order)

    def resolve(self, phases: Dict[str, Any]) -> PhaseResolution:
        last_complete = None
        for name in self.phase_order:
            status = _phase_status(phases.get(name))
            if status == PHASE_IN_PROGRESS:
                return PhaseResolution(name, PHASE_IN_PROGRESS)
            if status == PHASE_COMPLETE:
                last_complete = name

        if last_complete is not None:
            return PhaseResolution(last_complete, PHASE_COMPLETE)
        return PhaseResolution(NOT_STARTED, PHASE_PENDING)


class GenericPhaseStrategy(PhaseStrategy):
    """
    Fallback for workflow kinds nobody told us about.

    Walks phases in file order. Any field ending in "status" that reads
    "in_progress" marks the current phase; otherwise the last complete phase;
    otherwise "initializing".
    """

    def _statuses(self, value) -> List[str]:
        if isinstance(value, dict):
            return [
                v for k, v in value.items()
                if isinstance(k, str) and k.lower().endswith("status") and isinstance(v, str)
            ]
        if isinstance(value, str):
            return [value]
        return []

    def resolve(self, phases: Dict[str, Any]) -> PhaseResolution:
        last_complete = None
        for name, value in phases.items():
            statuses = self._statuses(value)
            if PHASE_IN_PROGRESS in statuses:
                return PhaseResolution(str(name), PHASE_IN_PROGRESS)
            if PHASE_COMPLETE in statuses:
                last_complete = str(name)

        if last_complete is not None:
            return PhaseResolution(last_complete, PHASE_COMPLETE)
        return PhaseResolution(INITIALIZING, PHASE_PENDING)


PHASE_STRATEGIES: Dict[str, PhaseStrategy] = {
    kind: OrderedPhaseStrategy(order) for kind, order in KNOWN_PHASES.items()
}
PHASE_STRATEGIES[WILDCARD] = GenericPhaseStrategy()


def register_strategy(workflow_kind: str, strategy: PhaseStrategy) -> None:
    PHASE_STRATEGIES[workflow_kind] = strategy


def get_strategy(workflow_kind: str) -> PhaseStrategy:
    return PHASE_STRATEGIES.get(workflow_kind, PHASE_STRATEGIES[WILDCARD])


# =============================================================================
# PHASE DETAIL (kind-specific progress fields)
# =============================================================================

def _phase_field(phases: Dict[str, Any], phase: str, key: str, default=0):
    value = phases.get(phase)
    if not isinstance(value, dict):
        return default
    found = value.get(key)
    return default if found is None else found


def _grand_library_detail(state: dict, phases: dict, res: PhaseResolution) -> dict:
    detail = {"project_name": state.get("project_name") or "unnamed"}
    if res.status == PHASE_IN_PROGRESS and res.phase == "interview":
        done = _phase_field(phases, "interview", "topics_completed")
        total = _phase_field(phases, "interview", "topics_total")
        detail["progress"] = f"{done}/{total} topics"
    if res.status == PHASE_IN_PROGRESS and res.phase == "draft":
        wave = _phase_field(phases, "draft", "current_wave")
        total = _phase_field(phases, "draft", "waves_total")
        detail["progress"] = f"wave {wave}/{total}"
    return detail


def _audit_detail(state: dict, phases: dict, res: PhaseResolution) -> dict:
    config = state.get("config") if isinstance(state.get("config"), dict) else {}
    detail = {
        "audit_number": state.get("audit_number") or 1,
        "tier": config.get("tier") or "standard",
    }
    if res.status == PHASE_IN_PROGRESS and res.phase == "investigate":
        done = _phase_field(phases, "investigate", "batches_completed")
        total = _phase_field(phases, "investigate", "batches_total")
        detail["progress"] = f"{done}/{total} batches"
    return detail


def _book_of_knowledge_detail(state: dict, phases: dict, res: PhaseResolution) -> dict:
    detail = {
        "kani_available": bool(state.get("kani_available", False)),
        "degraded_mode": bool(state.get("degraded_mode", False)),
    }
    if res.phase == "execute" and res.status in (PHASE_IN_PROGRESS, PHASE_COMPLETE):
        detail["progress"] = {
            key: _phase_field(phases, "execute", key)
            for key in ("proven", "stress_tested", "failed", "inconclusive")
        }
    if res.phase == "analyze" and res.status == PHASE_COMPLETE:
        detail["invariants_proposed"] = _phase_field(phases, "analyze", "invariants_proposed")
    return detail


DetailBuilder = Callable[[dict, dict, PhaseResolution], dict]

DETAIL_BUILDERS: Dict[str, DetailBuilder] = {
    "grand-library": _grand_library_detail,
    "stronghold-of-security": _audit_detail,
    "dinhs-bulwark": _audit_detail,
    "book-of-knowledge": _book_of_knowledge_detail,
    "BOK": _book_of_knowledge_detail,
}


# =============================================================================
# NEXT-COMMAND TABLE: (kind, phase, phase_status) -> instruction
# =============================================================================

def _build_next_commands() -> Dict[Tuple[str, str, str], str]:
    table = {}

    gl_resume = {
        "survey": "/GL:survey",
        "interview": "/GL:interview --resume",
        "draft": "/GL:draft",
        "reconcile": "/GL:reconcile",
    }
    for phase, cmd in gl_resume.items():
        table[("grand-library", phase, PHASE_IN_PROGRESS)] = f"Resume: {cmd}"

    def chain(kind, prefix, phases, resume_suffix=""):
        for phase in phases:
            table[(kind, phase, PHASE_IN_PROGRESS)] = f"Resume: /{prefix}:{phase}{resume_suffix}"
        for phase, successor in zip(phases, phases[1:]):
            table[(kind, phase, PHASE_COMPLETE)] = f"Next: /clear then /{prefix}:{successor}"

    chain("stronghold-of-security", "SOS", KNOWN_PHASES["stronghold-of-security"], " (auto-resumes)")
    chain("dinhs-bulwark", "DB", KNOWN_PHASES["dinhs-bulwark"], " (auto-resumes)")
    for kind in ("book-of-knowledge", "BOK"):
        chain(kind, "BOK", KNOWN_PHASES[kind])
        table[(kind, "report", PHASE_COMPLETE)] = "Verification complete"

    gl_phases = KNOWN_PHASES["grand-library"]
    for phase, successor in zip(gl_phases, gl_phases[1:]):
        table[("grand-library", phase, PHASE_COMPLETE)] = f"Next: /clear then /GL:{successor}"

    return table


NEXT_COMMANDS = _build_next_commands()


def next_command(workflow_kind: str, phase: str, phase_status: str) -> Optional[str]:
    return NEXT_COMMANDS.get((workflow_kind, phase, phase_status))


# =============================================================================
# AGGREGATION
# =============================================================================

def normalize(descriptor: WorkflowStateDescriptor, project_dir: str = "") -> NormalizedStatus:
    kind = descriptor.workflow_kind
    phases = descriptor.phases
    resolution = get_strategy(kind).resolve(phases)

    builder = DETAIL_BUILDERS.get(kind)
    detail = builder(descriptor.raw_fields, phases, resolution) if builder else {}

    updated = descriptor.last_updated.date().isoformat() if descriptor.last_updated else "unknown"

    state_file = descriptor.file_path
    if project_dir:
        state_file = os.path.relpath(state_file, project_dir)

    return NormalizedStatus(
        workflow_kind=kind,
        current_phase=resolution.phase,
        phase_status=resolution.status,
        last_updated=updated,
        phase_detail=detail,
        recommended_next_command=next_command(kind, resolution.phase, resolution.status),
        state_file=state_file.replace("\\", "/"),
    )


def _format_progress(progress) -> str:
    if isinstance(progress, dict):
        return ", ".join(f"{v} {k.replace('_', ' ')}" for k, v in progress.items())
    return str(progress)


def format_summary(statuses: List[NormalizedStatus], archived_run_count: int) -> str:
    if not statuses and archived_run_count == 0:
        return "No SVK state found in this project."

    lines = []
    for s in statuses:
        line = f"▸ {s.workflow_kind}: {s.current_phase} ({s.phase_status})"
        progress = s.phase_detail.get("progress")
        if progress:
            line += f" | {_format_progress(progress)}"
        if s.phase_detail.get("degraded_mode"):
            line += " (no Kani)"
        line += f" | updated {s.last_updated}"
        if s.recommended_next_command:
            line += f"\n  {s.recommended_next_command}"
        lines.append(line)

    if archived_run_count > 0:
        lines.append(f"History: {archived_run_count} previous audit(s) archived")

    return "\n".join(lines)


def project_status(project_dir: str) -> dict:
    descriptors = scan_workflow_states(project_dir)
    archived = count_archived_runs(project_dir)
    statuses = [normalize(d, project_dir) for d in descriptors]
    logger.debug(f"Resolved {len(statuses)} workflow(s), {archived} archived run(s)")

    return {
        "workflows": [s.to_dict() for s in statuses],
        "archived_run_count": archived,
        "summary": format_summary(statuses, archived),
    }
