import asyncio
import logging
import sys

from config import get_settings
from core import build_state, check_session
from version import __version__

log = logging.getLogger(__name__)


async def run():
    settings = get_settings()
    state = build_state(settings)
    try:
        if await check_session(state):
            log.info("Signed in as %s <%s>", state.user.name, state.user.email)
            balance = state.subscription_manager.balance
            if balance:
                log.info("Credits: %d (pro=%s)", balance.total_credits, balance.is_pro)
        else:
            log.info("Browsing as guest")
    finally:
        state.session_store.save()
        await state.api_client.close()


def main():
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )
    log.info("noteveda-client %s → %s", __version__, settings.api_url)
    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    main()
