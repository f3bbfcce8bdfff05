"""Runtime replacement of the platform SDK's webhook signature check.

Some SDK releases verify webhook signatures against the installation's
JWKS with no way to plug in a different verifier. This module locates the
SDK's verification function among the already-imported modules and swaps
it for an override that always succeeds, without touching the SDK's files.

Patching is best effort. The SDK may be imported after this code runs, so
:meth:`SignatureVerificationPatcher.install` makes one immediate pass and
one delayed pass. Finding nothing is not an error: the installed SDK may
already let the app supply its own verifier. No exception raised while
scanning ever reaches the caller; problems are only reported through the
module logger.

Example
-------
::

    from app_auth.patching import install_signature_bypass

    patcher = install_signature_bypass()
    ...
    patcher.restore()
"""
from __future__ import annotations

import logging
import sys
import threading
from collections.abc import MutableMapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

DEFAULT_FUNCTION_NAME = "verify_signature_with_jwks"
DEFAULT_PACKAGE_MARKER = "saleor_app_sdk"
DEFAULT_REGION_MARKERS: tuple[str, ...] = ("handlers", "verify", "next")
DEFAULT_DELAY_SECONDS = 0.1

_OVERRIDE_ATTR = "__app_auth_signature_override__"
_HINT_KEYWORDS = ("verify", "signature")


class PatchState(str, Enum):
    """Outcome of the most recent patch pass."""

    UNATTEMPTED = "unattempted"
    SCANNING = "scanning"
    PATCHED = "patched"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class PatchTarget:
    """A verification function located inside a loaded module.

    Parameters
    ----------
    module_name:
        Key of the module in the module registry.
    attribute:
        Name of the function attribute.
    via_default:
        ``True`` when the function hangs off the module's ``default``
        attribute rather than the module itself.
    """

    module_name: str
    attribute: str
    via_default: bool = False

    @property
    def path(self) -> str:
        suffix = ".default" if self.via_default else ""
        return f"{self.module_name}{suffix}.{self.attribute}"


def is_override(func: object) -> bool:
    """Return ``True`` if *func* is an override installed by this module."""
    return bool(getattr(func, _OVERRIDE_ATTR, False))


def _make_override(target: PatchTarget) -> Callable[..., Any]:
    async def verify_signature_override(*args: Any, **kwargs: Any) -> None:
        # Only argument counts and keyword names are logged, never values.
        logger.warning(
            "Bypassing JWKS signature verification (module=%s, positional=%d, keywords=%s)",
            target.path,
            len(args),
            sorted(kwargs),
        )

    setattr(verify_signature_override, _OVERRIDE_ATTR, True)
    verify_signature_override.__name__ = target.attribute
    return verify_signature_override


class SignatureVerificationPatcher:
    """Locate and replace the SDK signature verification function.

    Parameters
    ----------
    modules:
        Module registry to scan and mutate. Defaults to ``sys.modules``.
    function_name:
        Name of the verification function to replace.
    package_marker:
        Substring a module name must contain to belong to the SDK.
    region_markers:
        A module name must also contain at least one of these substrings.

    Already-replaced functions are recognised and skipped, so running
    several passes over the same registry patches each target once.
    """

    def __init__(
        self,
        modules: Optional[MutableMapping[str, Any]] = None,
        function_name: str = DEFAULT_FUNCTION_NAME,
        package_marker: str = DEFAULT_PACKAGE_MARKER,
        region_markers: tuple[str, ...] = DEFAULT_REGION_MARKERS,
    ) -> None:
        self._modules = modules if modules is not None else sys.modules
        self._function_name = function_name
        self._package_marker = package_marker
        self._region_markers = tuple(region_markers)
        self._originals: dict[PatchTarget, Callable[..., Any]] = {}
        self._state = PatchState.UNATTEMPTED
        self._timer: Optional[threading.Timer] = None
        self._lock = threading.Lock()
        self._pass_count = 0

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def state(self) -> PatchState:
        return self._state

    @property
    def patched_targets(self) -> list[PatchTarget]:
        """Targets currently replaced by this patcher, in patch order."""
        return list(self._originals)

    @property
    def timer(self) -> Optional[threading.Timer]:
        """The pending delayed pass scheduled by :meth:`install`, if any."""
        return self._timer

    # ------------------------------------------------------------------
    # Scanning
    # ------------------------------------------------------------------

    def candidate_modules(self) -> list[tuple[str, Any]]:
        """Return ``(name, module)`` pairs that look like SDK verify code."""
        candidates = []
        for name, module in list(self._modules.items()):
            if module is None or self._package_marker not in name:
                continue
            if any(marker in name for marker in self._region_markers):
                candidates.append((name, module))
        return candidates

    def scan(self) -> list[PatchTarget]:
        """Return every location of the verification function.

        Functions that are already overrides are included; use
        :func:`is_override` to tell them apart.
        """
        targets: list[PatchTarget] = []
        try:
            candidates = self.candidate_modules()
        except Exception as exc:
            logger.debug("Module cache scan failed: %s", exc)
            return targets
        for name, module in candidates:
            try:
                targets.extend(target for _, target, _ in self._locate(name, module))
            except Exception as exc:
                logger.debug("Inspecting module %s failed: %s", name, exc)
        return targets

    # ------------------------------------------------------------------
    # Patching
    # ------------------------------------------------------------------

    def patch_loaded_modules(self) -> int:
        """Run one patch pass and return the number of functions replaced."""
        with self._lock:
            self._state = PatchState.SCANNING
            self._pass_count = 0
            try:
                candidates = self.candidate_modules()
                logger.info(
                    "Found %d SDK module(s) in cache of %d: %s",
                    len(candidates),
                    len(self._modules),
                    [name for name, _ in candidates],
                )
                for name, module in candidates:
                    try:
                        self._patch_module(name, module)
                        self._log_hints(name, module)
                    except Exception as exc:
                        logger.debug("Inspecting module %s failed: %s", name, exc)
            except Exception as exc:
                logger.debug("Module cache patching failed: %s", exc)

            patched = self._pass_count
            if patched:
                logger.info("Successfully patched %d signature verification function(s)", patched)
            elif self._originals:
                logger.info("Signature verification functions already patched; nothing to do")
            else:
                logger.warning("No signature verification functions found to patch")

            self._state = PatchState.PATCHED if self._originals else PatchState.NOT_FOUND
            return patched

    def install(self, delay: float = DEFAULT_DELAY_SECONDS) -> None:
        """Patch now and once more after *delay* seconds. Never raises."""
        try:
            logger.info("Installing signature verification bypass")
            self.patch_loaded_modules()
            self._timer = threading.Timer(delay, self._delayed_pass)
            self._timer.daemon = True
            self._timer.start()
            logger.info("Signature verification bypass setup completed")
        except Exception as exc:
            logger.error("Failed to install signature verification bypass: %s", exc)

    def restore(self) -> int:
        """Put back every original function this patcher replaced.

        A target whose binding was changed by someone else since it was
        patched is left alone. Returns the number of functions restored.
        """
        restored = 0
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        with self._lock:
            for target, original in list(self._originals.items()):
                owner = self._owner(target)
                if owner is not None and is_override(getattr(owner, target.attribute, None)):
                    setattr(owner, target.attribute, original)
                    restored += 1
                del self._originals[target]
            self._state = PatchState.UNATTEMPTED
        logger.info("Restored %d signature verification function(s)", restored)
        return restored

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _delayed_pass(self) -> None:
        try:
            self.patch_loaded_modules()
        except Exception as exc:
            logger.debug("Delayed patching failed: %s", exc)

    def _owner(self, target: PatchTarget) -> Any:
        module = self._modules.get(target.module_name)
        if module is None or not target.via_default:
            return module
        return getattr(module, "default", None)

    def _locate(self, name: str, module: Any) -> list[tuple[Any, PatchTarget, Any]]:
        """Return ``(owner, target, current function)`` for each location."""
        owners = [(module, False)]
        default = getattr(module, "default", None)
        if default is not None:
            owners.append((default, True))

        found = []
        for owner, via_default in owners:
            current = getattr(owner, self._function_name, None)
            if callable(current):
                target = PatchTarget(name, self._function_name, via_default=via_default)
                found.append((owner, target, current))
        return found

    def _patch_module(self, name: str, module: Any) -> None:
        for owner, target, current in self._locate(name, module):
            if is_override(current):
                continue
            setattr(owner, target.attribute, _make_override(target))
            self._originals.setdefault(target, current)
            self._pass_count += 1
            logger.info(
                "Patched %s (via_default=%s)",
                target.path,
                target.via_default,
                extra={"patched_module": name, "via_default": target.via_default},
            )

    def _log_hints(self, name: str, module: Any) -> None:
        for attr, value in list(vars(module).items()):
            if attr == self._function_name or not callable(value):
                continue
            lowered = attr.lower()
            if any(keyword in lowered for keyword in _HINT_KEYWORDS):
                logger.info("Found potential signature function %s in %s", attr, name)


def install_signature_bypass(
    delay: float = DEFAULT_DELAY_SECONDS,
    modules: Optional[MutableMapping[str, Any]] = None,
) -> SignatureVerificationPatcher:
    """Create a :class:`SignatureVerificationPatcher` and install it."""
    patcher = SignatureVerificationPatcher(modules=modules)
    patcher.install(delay=delay)
    return patcher
