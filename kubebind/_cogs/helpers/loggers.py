"""
Logging setup: formats, formatters, and per-object loggers.

The per-object loggers carry the object's identifiers (`k8s_ref`),
so that the formatters can prefix the messages with ``[namespace/name]``
in the text logs, or put the reference into a separate key in the JSON logs.
"""
import copy
import enum
import logging
from typing import Any, Dict, Mapping, MutableMapping, Optional, Tuple, Union

import pythonjsonlogger.jsonlogger

DEFAULT_JSON_REFKEY = 'object'
""" A key for object references in JSON logs, as seen by the log parsers. """

# Too chatty for anything but debugging: silenced unless in the debug mode.
LOW_LEVEL_LOGGERS = ['asyncio', 'aiohttp']

# The upper bounds of the levels for the JSON logs' severities, in ascending order.
SEVERITIES = [
    (logging.DEBUG, 'debug'),
    (logging.INFO, 'info'),
    (logging.WARNING, 'warn'),
    (logging.ERROR, 'error'),
]


class LogFormat(enum.Enum):
    """ Log formats, as specified on CLI. """
    PLAIN = '%(message)s'
    FULL = '[%(asctime)s] %(name)-20.20s [%(levelname)-8.8s] %(message)s'
    JSON = enum.auto()


def get_severity(levelno: int) -> str:
    for threshold, severity in SEVERITIES:
        if levelno <= threshold:
            return severity
    return 'fatal'


class ObjectFormatter(logging.Formatter):
    """
    A base for the library's own formatters, optionally prefixing the messages.

    Only the records of the object loggers are prefixed; others are left as is.
    The records are not modified: they can be shared by several handlers.
    """

    def __init__(self, *args: Any, prefixing: bool = False, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.prefixing = prefixing

    def format(self, record: logging.LogRecord) -> str:
        ref: Optional[Mapping[str, Any]] = getattr(record, 'k8s_ref', None)
        if self.prefixing and ref is not None:
            namespace, name = ref.get('namespace'), ref.get('name')
            record = copy.copy(record)  # shallow
            record.msg = f"[{namespace}/{name}] {record.msg}" if namespace else f"[{name}] {record.msg}"
        return super().format(record)


class TextFormatter(ObjectFormatter, logging.Formatter):
    pass


class JsonFormatter(ObjectFormatter, pythonjsonlogger.jsonlogger.JsonFormatter):  # type: ignore
    """
    JSON logs with the object references & severities as separate keys.
    """

    def __init__(
            self,
            *args: Any,
            refkey: Optional[str] = None,
            **kwargs: Any,
    ) -> None:
        # The reference is added under its own key, not as a regular extra.
        reserved_attrs = set(kwargs.pop('reserved_attrs', pythonjsonlogger.jsonlogger.RESERVED_ATTRS))
        kwargs.update(reserved_attrs=reserved_attrs | {'k8s_ref'})
        kwargs.setdefault('timestamp', True)
        super().__init__(*args, **kwargs)
        self.refkey: str = refkey or DEFAULT_JSON_REFKEY

    def add_fields(
            self,
            log_record: MutableMapping[str, object],
            record: logging.LogRecord,
            message_dict: MutableMapping[str, object],
    ) -> None:
        super().add_fields(log_record, record, message_dict)
        if hasattr(record, 'k8s_ref'):
            log_record[self.refkey] = getattr(record, 'k8s_ref')
        log_record.setdefault('severity', get_severity(record.levelno))


def make_reference(body: Mapping[str, Any]) -> Dict[str, Any]:
    """ Only the identifiers, as in the object references of K8s API. """
    meta = body.get('metadata') or {}
    return dict(
        apiVersion=body.get('apiVersion'),
        kind=body.get('kind'),
        name=meta.get('name'),
        uid=meta.get('uid'),
        namespace=meta.get('namespace'),
    )


class ObjectLogger(logging.LoggerAdapter):  # type: ignore
    """
    A logger/adapter to carry the object identifiers for formatting.

    The identifiers are copied, so that later changes of the object
    do not affect the messages logged before.
    """

    def __init__(
            self,
            *,
            body: Mapping[str, Any],
            logger: Optional[logging.Logger] = None,
    ) -> None:
        super().__init__(logger if logger is not None else objects_logger,
                         dict(k8s_ref=make_reference(body)))

    def process(
            self,
            msg: str,
            kwargs: MutableMapping[str, Any],
    ) -> Tuple[str, MutableMapping[str, Any]]:
        # The native adapters replace the message's extras; here, they are merged.
        kwargs["extra"] = dict(self.extra or {}, **kwargs.get('extra', {}))
        return msg, kwargs


objects_logger = logging.getLogger('kubebind.objects')


def configure(
        debug: Optional[bool] = None,
        verbose: Optional[bool] = None,
        quiet: Optional[bool] = None,
        log_format: Union[LogFormat, str] = LogFormat.FULL,
        log_prefix: Optional[bool] = False,
        log_refkey: Optional[str] = None,
) -> None:
    """
    Log to stderr with the library's formatters, e.g. in the CLI.

    The previously configured handlers of the library are replaced, not duplicated.
    """
    handler = logging.StreamHandler()
    handler.setFormatter(make_formatter(log_format=log_format, log_prefix=log_prefix,
                                        log_refkey=log_refkey))

    root = logging.getLogger()
    root.handlers[:] = [h for h in root.handlers if not isinstance(h.formatter, ObjectFormatter)]
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if debug or verbose else logging.WARNING if quiet else logging.INFO)

    for name in LOW_LEVEL_LOGGERS:
        logger = logging.getLogger(name)
        logger.propagate = bool(debug)
        if not debug:
            logger.handlers[:] = [logging.NullHandler()]


def make_formatter(
        log_format: Union[LogFormat, str] = LogFormat.FULL,
        log_prefix: Optional[bool] = False,
        log_refkey: Optional[str] = None,
) -> ObjectFormatter:
    """
    Make a formatter for a format: a predefined one, or a custom `logging` format.

    The JSON logs are not prefixed by default, as they have the references in a key.
    """
    prefixing = log_prefix if log_prefix is not None else log_format is not LogFormat.JSON
    if log_format is LogFormat.JSON:
        return JsonFormatter(refkey=log_refkey, prefixing=prefixing)
    elif isinstance(log_format, LogFormat):
        return TextFormatter(log_format.value, prefixing=prefixing)
    elif isinstance(log_format, str):
        return TextFormatter(log_format, prefixing=prefixing)
    else:
        raise ValueError(f"Unsupported log format: {log_format!r}")
