from .magnet_quota import MagnetQuotaUseCase
from .stream_resolution import StreamResolutionUseCase

__all__ = ["MagnetQuotaUseCase", "StreamResolutionUseCase"]
