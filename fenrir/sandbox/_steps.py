"""Status-line framing for provisioning steps."""

from __future__ import annotations

import contextlib
import typing as typ

from fenrir.errors import FenrirError

if typ.TYPE_CHECKING:
    from fenrir.console import StatusConsole


@contextlib.contextmanager
def status_step(
    console: StatusConsole,
    *,
    done: str,
    failed: str,
    begin: str | None = None,
) -> typ.Iterator[None]:
    """Print ``begin``, then ``done`` or ``failed`` depending on the outcome.

    Errors are re-raised after the failure line is printed.
    """
    if begin is not None:
        console.info(begin)
    try:
        yield
    except FenrirError:
        console.err(failed)
        raise
    console.ok(done)
