"""
Interactive Pipeline Session Module

Drives a PipelineEditor from the terminal with slash commands.
"""

import asyncio
import logging
from typing import Optional

from rich.console import Console
from rich.prompt import Prompt

from src.pipeline_graph.editor import PipelineEditor
from src.pipeline_session.commands import CommandHandler
from src.pipeline_session.display import DisplayHelper

logger = logging.getLogger(__name__)


class InteractivePipelineSession:
    """
    Interactive session around a PipelineEditor.

    Node runtimes and tab classification keep running in the background
    while the session waits for the next command.
    """

    def __init__(
        self,
        editor: Optional[PipelineEditor] = None,
        debug_mode: bool = False,
        console: Optional[Console] = None,
    ):
        """
        Args:
            editor: Editor to drive (configured from settings when None)
            debug_mode: Print tracebacks for unexpected errors
            console: Rich console to print to
        """
        self.console = console or Console()
        self.display = DisplayHelper(self.console)
        self.debug_mode = debug_mode
        self._editor = editor
        self.command_handler = CommandHandler(self)

    @property
    def editor(self) -> PipelineEditor:
        if self._editor is None:
            self._editor = PipelineEditor.from_settings()
        return self._editor

    def run(self):
        """Run the interactive session (blocking)."""
        asyncio.run(self.run_async())

    async def run_async(self):
        self.display.show_welcome()
        self.display.show_info(
            f"{len(self.editor.tabs)} tabs loaded | classifier: {self.editor.classifier.mode}"
        )

        while True:
            try:
                line = await asyncio.to_thread(Prompt.ask, "\n[bold cyan]pipeline>[/bold cyan]")
                if not line.strip():
                    continue
                if not line.startswith("/"):
                    self.console.print("[dim]Commands start with '/'. Type /help.[/dim]")
                    continue
                if not await self.command_handler.handle(line):
                    break

            except KeyboardInterrupt:
                self.console.print("\n[yellow]Use /exit to quit[/yellow]")
                continue
            except EOFError:
                break
            except Exception as e:
                logger.error(f"[Session] Command failed: {e}", exc_info=self.debug_mode)
                self.display.show_error(f"Unexpected error: {e}")

        self.shutdown()

    def shutdown(self):
        if self._editor is not None:
            self._editor.close()
        self.console.print("[cyan]Goodbye![/cyan]")


def main(argv=None):
    """Main entry point for the interactive session."""
    import argparse

    from src.shared_lib.core.settings import validate_settings
    from src.shared_lib.utils.logger import setup_logging

    parser = argparse.ArgumentParser(description="Interactive Prompt Pipeline Session")
    parser.add_argument("--empty", action="store_true", help="Start without the sample tabs")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")
    parser.add_argument("--debug", action="store_true", help="Show tracebacks for errors")

    args = parser.parse_args(argv)

    setup_logging(level="DEBUG" if args.verbose else "WARNING")
    validate_settings()

    editor = PipelineEditor.from_settings(seed_samples=not args.empty)
    session = InteractivePipelineSession(editor=editor, debug_mode=args.debug)
    session.run()


if __name__ == "__main__":
    main()
