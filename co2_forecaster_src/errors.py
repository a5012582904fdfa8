# co2_forecaster_src/errors.py

"""Exception types raised by the emissions forecasting workflow."""


class ForecasterError(Exception):
    """Base class for all workflow errors."""


class DataFetchError(ForecasterError):
    """Upstream indicator data could not be retrieved or was incomplete."""


class SeriesValidationError(ForecasterError):
    """An annual series does not satisfy the TimeSeries contract."""


class StationarityError(ForecasterError):
    """Stationarity tests still disagree at the maximum differencing order."""


class ModelSelectionError(ForecasterError):
    """No candidate model in the order grid could be fitted."""
