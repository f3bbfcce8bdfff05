"""Call-site wrapper for the SDK webhook processor.

Where the SDK's webhook entry point can be wrapped directly, this is a
narrower seam than replacing its internal verifier: the original processor
still runs, and only a signature-verification failure is turned into a
successful result.
"""
from __future__ import annotations

import functools
import logging
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)

SIGNATURE_VERIFICATION_FAILED = "SIGNATURE_VERIFICATION_FAILED"
DEFAULT_PROCESSOR_NAME = "process_saleor_webhook"

_WRAPPED_ATTR = "__app_auth_signature_tolerant__"


def bypass_signature_errors(
    process: Callable[..., Awaitable[Any]],
) -> Callable[..., Awaitable[Any]]:
    """Wrap an async webhook processor so signature failures are tolerated.

    An exception whose ``error_type`` attribute equals
    ``"SIGNATURE_VERIFICATION_FAILED"`` is logged and replaced with
    ``{"status_code": 200}``. Every other exception is re-raised.
    """
    if getattr(process, _WRAPPED_ATTR, False):
        return process

    @functools.wraps(process)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await process(*args, **kwargs)
        except Exception as exc:
            if getattr(exc, "error_type", None) != SIGNATURE_VERIFICATION_FAILED:
                raise
            logger.warning(
                "Caught and bypassing signature verification error: %s", exc
            )
            return {"status_code": 200}

    setattr(wrapper, _WRAPPED_ATTR, True)
    return wrapper


def patch_processor(module: Any, name: str = DEFAULT_PROCESSOR_NAME) -> bool:
    """Replace ``module.<name>`` with its signature-tolerant wrapper.

    Returns ``True`` when the wrapper is in place afterwards. Never raises.
    """
    try:
        process = getattr(module, name, None)
        if not callable(process):
            logger.info("No %s found on %r; processor left unwrapped", name, module)
            return False
        setattr(module, name, bypass_signature_errors(process))
        logger.info("Signature-tolerant webhook processor installed as %s", name)
        return True
    except Exception as exc:
        logger.error("Installing signature-tolerant processor failed: %s", exc)
        return False
