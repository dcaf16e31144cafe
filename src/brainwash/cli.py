"""Interactive CLI for the Brainwash workout assistant."""

import asyncio
import logging
import sys

from .config import config
from .core import MessageHandler

logger = logging.getLogger(__name__)


class BrainwashCLI:
    """Chat loop that routes input through the shared message handler."""

    def __init__(self, user_id: int | None = None) -> None:
        self._handler = MessageHandler()
        self._user_id = user_id if user_id is not None else config.app.cli_user_id

    async def initialize(self) -> None:
        await self._handler.initialize()
        print("Connected to database and LLM.")

    async def close(self) -> None:
        await self._handler.close()

    async def run(self) -> None:
        await self.initialize()
        print("Brainwash Workout Assistant")
        print("Type 'help' for commands or 'exit' to quit.")
        print("-" * 50)

        while True:
            try:
                user_input = input("You: ").strip()
                if not user_input:
                    continue
                command, _, argument = user_input.partition(" ")
                command = command.lower()
                if command in ("exit", "quit", "bye"):
                    print("Goodbye!")
                    break
                if command == "help":
                    self._show_help()
                    continue

                if command == "today":
                    response = await self._handler.today_summary(self._user_id, argument.strip() or None)
                elif command == "undo":
                    response = await self._handler.undo_last(self._user_id)
                elif command == "stats":
                    weeks = int(argument) if argument.strip().isdigit() else None
                    response = await self._handler.stats_summary(self._user_id, weeks)
                else:
                    reply = await self._handler.process(user_input, self._user_id)
                    print(f"  [{reply.outcome.kind}]")
                    response = reply.text
                print(f"Brainwash: {response}")
                print("-" * 50)

            except (KeyboardInterrupt, EOFError):
                print("\nGoodbye!")
                break
            except ValueError as e:
                print(f"Error: {e}")
                continue
            except Exception:
                logger.exception("Error processing CLI input")
                print("Sorry, something went wrong. Try again.")
                continue

        await self.close()

    def _show_help(self) -> None:
        print(
            "Brainwash Commands:\n"
            "\n"
            "  Log a set:\n"
            '    "log 15 reps of push ups"\n'
            '    "log 1:30 min plank"\n'
            '    "add a set of squats with 12 reps"\n'
            "\n"
            "  Confirm a suggestion:\n"
            '    "yes" (first suggestion) or its number\n'
            "\n"
            "  today [YYYY-MM-DD]  - show a workout day\n"
            "  stats [weeks]       - sets per category per week\n"
            "  undo                - remove the last set the assistant logged\n"
            "  help                - show this message\n"
            "  exit                - quit"
        )


async def main() -> None:
    cli = BrainwashCLI()
    await cli.run()


def main_sync() -> None:
    """Entry point for pyproject.toml console_scripts."""
    logging.basicConfig(
        level=config.logging.level,
        format=config.logging.format,
    )
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nGoodbye!")
        sys.exit(0)


if __name__ == "__main__":
    main_sync()
