"""Error taxonomy shared by every pipeline stage."""


class PipelineError(Exception):
    """Fatal condition that aborts a stage. `stage` is set by the stage runner."""

    def __init__(self, message, stage=None):
        super().__init__(message)
        self.message = message
        self.stage = stage

    def __str__(self):
        if self.stage:
            return f"[{self.stage}] {self.message}"
        return self.message


class DataUnavailable(PipelineError):
    """The source could not be fetched or parsed."""


class SchemaMismatch(DataUnavailable):
    """A required column is absent from the source."""

    def __init__(self, missing, stage=None):
        self.missing = sorted(missing)
        super().__init__(f"Missing required columns: {', '.join(self.missing)}", stage=stage)


class ModelFitError(PipelineError):
    """The regression input is degenerate or the solver failed."""
