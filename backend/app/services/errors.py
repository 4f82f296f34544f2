from __future__ import annotations


class SimulationFetchError(RuntimeError):
    """A bulk read from the data store failed; the computation was aborted."""


class SimulationWriteError(RuntimeError):
    """Persisting a new simulation failed and was rolled back."""


class SimulationValidationError(ValueError):
    """Input rejected before any lookup was attempted."""


class DuplicateSimulationError(Exception):
    def __init__(self, existing_id: int):
        super().__init__(f"simulation with the same question set already exists (id={existing_id})")
        self.existing_id = int(existing_id)


class ImportItemError(ValueError):
    pass


class ScheduleValidationError(ValueError):
    pass
