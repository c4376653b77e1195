from __future__ import annotations

import asyncio
import sys
import webbrowser

from auth.errors import AuthorizationError, CancelledByCaller, UserDenied
from auth.session import OpenExternal, run_oauth
from manager.constants import APP_VERSION, LOGGER
from manager.env import load_env, setup_logging


async def connect_gcp_account(open_external: OpenExternal = webbrowser.open) -> str:
    session = await run_oauth(open_external)
    try:
        return await asyncio.shield(session.result)
    except asyncio.CancelledError:
        session.cancel()
        raise
    finally:
        await session.wait_closed()


def main() -> None:
    load_env()
    setup_logging()
    LOGGER.info("Server manager %s: connecting a Google Cloud account", APP_VERSION)

    try:
        refresh_token = asyncio.run(connect_gcp_account())
    except KeyboardInterrupt:
        print("Authentication cancelled.", file=sys.stderr)
        raise SystemExit(130)
    except (UserDenied, CancelledByCaller) as error:
        print(f"{error}.", file=sys.stderr)
        raise SystemExit(1)
    except AuthorizationError as error:
        print(str(error), file=sys.stderr)
        raise SystemExit(1)

    print(refresh_token)


if __name__ == "__main__":
    main()
