"""
Plain type aliases shared across the clients & structs.

`logging.LoggerAdapter` is generic only in the type-sheds, not at runtime,
so the subscripted form is used for type-checking only.
"""
import logging
from typing import TYPE_CHECKING, Any, Mapping, Union

if TYPE_CHECKING:
    LoggerAdapter = logging.LoggerAdapter[Any]
else:
    LoggerAdapter = logging.LoggerAdapter

# Any of the built-in loggable classes: a logger itself, or an adapter (e.g. `ObjectLogger`).
Logger = Union[logging.Logger, LoggerAdapter]

# The query parameters & extra headers of the API requests, as passed by the callers.
Params = Mapping[str, str]
Headers = Mapping[str, str]
