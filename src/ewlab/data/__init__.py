from ewlab.data.types import Candle, CandleSeries  # noqa: F401
