"""Analysis errors shared by the loader and the model trainer"""


class DataLoadError(ValueError):
    """Input file missing, unparseable, or not matching the expected schema."""

    def __init__(self, message, columns=None):
        super().__init__(message)
        self.columns = list(columns) if columns else []


class ModelFitError(RuntimeError):
    """Binomial model could not be fit on the given design matrix."""
