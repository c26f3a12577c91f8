"""Terminal implementation of the user interaction calls."""

import asyncio
from typing import Optional

import typer

from ..models import ConsentRequest, Decision, FatalErrorNotice


class ConsoleInteraction:
    """Asks consent questions on the terminal.

    Prompts run in a worker thread so the event loop keeps serving other
    work while the user thinks. An empty answer or end of input dismisses
    the prompt.
    """

    async def ask(self, request: ConsentRequest) -> Optional[Decision]:
        return await asyncio.to_thread(self._ask_blocking, request)

    def _ask_blocking(self, request: ConsentRequest) -> Optional[Decision]:
        typer.echo("")
        typer.secho(request.title, bold=True)
        typer.echo(request.message)
        if request.domain_count > 1:
            typer.echo(f"Domains: {', '.join(request.domains)}")
        for index, choice in enumerate(request.choices, start=1):
            typer.echo(f"  [{index}] {choice.label}")

        while True:
            try:
                answer = typer.prompt("Your choice (empty to dismiss)", default="", show_default=False)
            except typer.Abort:
                return None

            answer = answer.strip()
            if not answer:
                return None
            if answer.isdigit() and 1 <= int(answer) <= len(request.choices):
                return request.choices[int(answer) - 1].decision
            typer.echo(f"Please enter a number between 1 and {len(request.choices)}.")

    async def notify_fatal(self, notice: FatalErrorNotice) -> None:
        typer.secho(notice.title, fg=typer.colors.RED, bold=True, err=True)
        typer.echo(notice.message, err=True)
        typer.echo(f"Reason:\n{notice.reason}", err=True)
