"""Small helpers shared across the heat-balance model."""
from dataclasses import asdict, is_dataclass
from typing import Any, Dict
import logging
import sys

logger = logging.getLogger(__name__)


def safe_log_exception(msg: str, exc: Exception, **ctx: Any) -> None:
    """Report a best-effort failure with its traceback and keyword context.

    Falls back to stderr when logging itself fails.
    """
    detail = ', '.join(f'{key}={value!r}' for key, value in sorted(ctx.items()))
    try:
        logger.exception('%s: %s%s', msg, exc, f' ({detail})' if detail else '')
    except Exception:
        print(f'endotherm: {msg}: {exc}', file=sys.stderr)


def flatten(obj: Any, prefix: str = '') -> Dict[str, Any]:
    """Flatten nested dataclasses/dicts into dotted keys.

    >>> flatten({'a': {'b': 1}})
    {'a.b': 1}
    """
    if is_dataclass(obj) and not isinstance(obj, type):
        obj = asdict(obj)
    out: Dict[str, Any] = {}
    if isinstance(obj, dict):
        for key, value in obj.items():
            name = f'{prefix}.{key}' if prefix else str(key)
            if isinstance(value, dict) or (is_dataclass(value) and not isinstance(value, type)):
                out.update(flatten(value, name))
            else:
                out[name] = value
    else:
        out[prefix] = obj
    return out
