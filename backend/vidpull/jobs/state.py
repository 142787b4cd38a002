"""
Stage transition validation for the job slot.

Job lifecycle: IDLE → DOWNLOADING → [CONVERTING] → FINISHED | FAILED | CANCELLED

INVARIANT: Terminal stages are immutable for the job that reached them.
The only way out of a terminal stage is IDLE, which marks the start of
the next job. A pipeline returning after its job was cancelled must
never overwrite CANCELLED with FINISHED or FAILED.
"""

from typing import FrozenSet, Set, Tuple

from .models import JobStage


TERMINAL_STAGES: FrozenSet[JobStage] = frozenset({
    JobStage.FINISHED,
    JobStage.FAILED,
    JobStage.CANCELLED,
})


_STAGE_TRANSITIONS: Set[Tuple[JobStage, JobStage]] = {
    # Rejected before work started (validation, missing tool) or cancelled early
    (JobStage.IDLE, JobStage.DOWNLOADING),
    (JobStage.IDLE, JobStage.FAILED),
    (JobStage.IDLE, JobStage.CANCELLED),

    (JobStage.DOWNLOADING, JobStage.CONVERTING),
    (JobStage.DOWNLOADING, JobStage.FINISHED),
    (JobStage.DOWNLOADING, JobStage.FAILED),
    (JobStage.DOWNLOADING, JobStage.CANCELLED),

    (JobStage.CONVERTING, JobStage.FINISHED),
    (JobStage.CONVERTING, JobStage.FAILED),
    (JobStage.CONVERTING, JobStage.CANCELLED),

    # Next job
    (JobStage.FINISHED, JobStage.IDLE),
    (JobStage.FAILED, JobStage.IDLE),
    (JobStage.CANCELLED, JobStage.IDLE),
}


def is_terminal(stage: JobStage) -> bool:
    return stage in TERMINAL_STAGES


def can_transition(from_stage: JobStage, to_stage: JobStage) -> bool:
    """
    Check if a stage transition is legal.

    Staying in the same stage is always legal (detail-only update).
    """
    if from_stage == to_stage:
        return True
    return (from_stage, to_stage) in _STAGE_TRANSITIONS
