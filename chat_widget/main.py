"""Terminal chat entrypoint."""

import asyncio

from dotenv import load_dotenv

# Load environment variables from .env file before settings are read
load_dotenv()

from chat_widget.adapters.inbound.cli.terminal_chat import TerminalChat  # noqa: E402
from chat_widget.infrastructure.wiring.dependencies import (  # noqa: E402
    create_conversation_controller,
    create_http_client,
    create_key_value_store,
)


async def run() -> None:
    """Run the terminal chat until the user quits."""
    store = create_key_value_store()
    try:
        async with create_http_client() as http_client:
            controller = create_conversation_controller(http_client=http_client, store=store)
            await TerminalChat(controller).run()
    finally:
        await store.close()


def main() -> None:
    """Console script entrypoint."""
    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
