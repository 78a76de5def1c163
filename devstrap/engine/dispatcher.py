"""Run the attempt policy over a single target."""

import logging

from .cancellation import CancelToken
from .models import Failure, InstallOutcome, Installer, Target
from .policy import AttemptPolicy

_logging = logging.getLogger(__name__)


def _describe(exc: BaseException) -> str:
    return f"{type(exc).__name__}: {exc}"


async def _attempt(installer: Installer, target: Target) -> Failure | None:
    try:
        return await installer.install(target)
    except Exception as e:
        _logging.debug(f"Installer raised while installing {target.name}: {_describe(e)}")
        return Failure(_describe(e))


async def dispatch(
    target: Target,
    installer: Installer,
    policy: AttemptPolicy | None = None,
    token: CancelToken | None = None,
) -> InstallOutcome:
    """Produce exactly one outcome for ``target``.

    Installer errors, including unexpected exceptions, are captured into the
    outcome and never propagate.
    """
    policy = policy or AttemptPolicy()
    token = token or CancelToken()

    if token.cancelled:
        return InstallOutcome.cancelled_before(target)

    try:
        present = await installer.is_present(target)
    except Exception as e:
        _logging.debug(f"Presence check failed for {target.name}: {_describe(e)}")
        return InstallOutcome.failed(target, f"presence check failed: {_describe(e)}", 0)

    if present:
        _logging.debug(f"{target.name} is already installed, skipping")
        return InstallOutcome.already_present(target)

    if token.cancelled:
        return InstallOutcome.cancelled_before(target)

    attempt = 0
    while True:
        attempt += 1
        _logging.debug(
            f"Installing {target.name} (attempt {attempt}/{policy.max_attempts})"
        )
        failure = await _attempt(installer, target)

        if failure is None:
            return InstallOutcome.installed(target, attempt)

        if failure.already_exists:
            _logging.debug(f"{target.name} already exists: {failure.reason}")
            return InstallOutcome.already_present(target, attempts=attempt)

        try:
            retry = policy.should_retry(failure, attempt)
            delay = policy.delay_for(attempt) if retry else 0.0
        except Exception as e:
            _logging.info(f"Retry policy failed for {target.name}: {_describe(e)}")
            return InstallOutcome.failed(
                target, f"retry policy failed: {_describe(e)}", attempt
            )

        if not retry:
            return InstallOutcome.failed(target, failure.reason, attempt)

        _logging.info(
            f"Failed to install {target.name}, retrying in {delay:g}s: {failure.reason}"
        )
        if await token.sleep(delay):
            return InstallOutcome.cancelled_before(target, attempts=attempt)


__all__ = ["dispatch"]
