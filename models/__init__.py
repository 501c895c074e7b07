from .aggregation import (
    NO_NEW_DATA,
    AggregationRequest,
    AggregationResult,
    AggregationStatus,
    BrandReport,
    NoNewData,
)
from .camera_update import CameraUpdate, Priority, UpdateType
from .outcome import Outcome, Skip, SkipReason, Stage

__all__ = [
    'AggregationRequest', 'AggregationResult', 'AggregationStatus', 'BrandReport',
    'CameraUpdate', 'NO_NEW_DATA', 'NoNewData', 'Outcome', 'Priority', 'Skip',
    'SkipReason', 'Stage', 'UpdateType',
]
