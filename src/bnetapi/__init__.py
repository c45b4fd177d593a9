from .api import send_batch as send_batch
from .api import send_batch_async as send_batch_async
from .client import BattleNetClient as BattleNetClient
from .config import ClientConfig as ClientConfig
from .coordinator import BatchCoordinator as BatchCoordinator
from .coordinator import SendResult as SendResult
from .exceptions import BattleNetAPIError as BattleNetAPIError
from .exceptions import ConfigurationError as ConfigurationError
from .exceptions import EmptyBatchError as EmptyBatchError
from .exceptions import EndpointResolutionError as EndpointResolutionError
from .exceptions import MissingCredentialError as MissingCredentialError
from .exceptions import MissingParameterError as MissingParameterError
from .exceptions import TransportUnavailableError as TransportUnavailableError
from .limiter import RateLimiter as RateLimiter
from .pool import DispatchPool as DispatchPool
from .request import RequestDescriptor as RequestDescriptor

__all__ = [
    "BattleNetClient",
    "ClientConfig",
    "BatchCoordinator",
    "SendResult",
    "DispatchPool",
    "RateLimiter",
    "RequestDescriptor",
    "send_batch",
    "send_batch_async",
    "BattleNetAPIError",
    "ConfigurationError",
    "EmptyBatchError",
    "EndpointResolutionError",
    "MissingCredentialError",
    "MissingParameterError",
    "TransportUnavailableError",
]
