"""Terminal prompts and progress display for Track Fetcher.

Everything that talks to the operator goes through ``ConsoleUI``: the
credential prompts, the song menu, the Retry/Skip question after a
timed-out download, and the per-mix progress bar.
"""

from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TextColumn
from rich.prompt import Confirm, Prompt

from automation.track_downloader import Decision

REFRESH = "refresh"
MANUAL = "manual"
EXIT = "exit"


class ConsoleUI:
    """Rich-based prompts.  One instance per run."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console()
        self._progress: Progress | None = None
        self._task = None

    # ------------------------------------------------------------------
    # Prompts
    # ------------------------------------------------------------------

    def _ask(self, prompt: str, default: str = "", **kwargs) -> str:
        if default:
            kwargs["default"] = default
        return Prompt.ask(prompt, console=self.console, **kwargs)

    def ask_credentials(self, email: str = "", password: str = "") -> tuple[str, str]:
        email = self._ask("Enter your Karaoke-Version email", email)
        password = self._ask("Enter your password", password, password=True, show_default=False)
        return email.strip(), password

    def choose_action(self, entries) -> str:
        """Show the song menu; return a song URL, REFRESH, MANUAL or EXIT."""
        self.console.rule("Select a Song to Download")
        for number, entry in enumerate(entries, start=1):
            self.console.print(f"[cyan]{number:>3}[/cyan]  {entry.display_name}")
        self.console.rule()
        extra = {"r": REFRESH, "u": MANUAL, "q": EXIT}
        self.console.print("[cyan]  r[/cyan]  Refresh song list")
        self.console.print("[cyan]  u[/cyan]  Enter a song URL manually")
        self.console.print("[cyan]  q[/cyan]  Exit")

        while True:
            answer = Prompt.ask("What would you like to do?", console=self.console).strip().lower()
            if answer in extra:
                return extra[answer]
            if answer.isdigit() and 1 <= int(answer) <= len(entries):
                return entries[int(answer) - 1].key
            self.console.print("[red]Please pick a number from the list, r, u or q.[/red]")

    def ask_url(self, default: str = "") -> str:
        return self._ask("Enter the song URL", default).strip()

    def ask_click_track(self, default: bool) -> bool:
        return Confirm.ask("Enable 'Intro Click'?", default=default, console=self.console)

    def ask_retry_or_skip(self, track_name: str) -> Decision:
        """Pause the progress bar and ask what to do with a timed-out track."""
        if self._progress:
            self._progress.stop()
        self.console.print(f"\n[yellow]Download for \"{track_name}\" timed out.[/yellow]")
        choice = Prompt.ask(
            f"What would you like to do for \"{track_name}\"?",
            choices=[d.value for d in Decision], default=Decision.RETRY.value,
            console=self.console,
        )
        if self._progress:
            self._progress.start()
        return Decision(choice)

    # ------------------------------------------------------------------
    # Messages and progress
    # ------------------------------------------------------------------

    def info(self, message: str) -> None:
        self.console.print(message)

    def error(self, message: str) -> None:
        self.console.print(f"[bold red]{message}[/bold red]")

    def start_mix(self, title: str, total: int) -> None:
        self.finish_mix()
        self._progress = Progress(
            TextColumn("[bold blue]{task.fields[step]}"),
            BarColumn(bar_width=40),
            MofNCompleteColumn(),
            TextColumn("Tracks"),
            console=self.console,
        )
        self._task = self._progress.add_task(title, total=total, step=f"Downloading \"{title}\"")
        self._progress.start()

    def step(self, message: str) -> None:
        if self._progress is not None:
            self._progress.update(self._task, step=message)
        else:
            self.console.print(f"[dim]{message}[/dim]")

    def track_done(self, outcome) -> None:
        if self._progress is not None:
            self._progress.advance(self._task)

    def finish_mix(self) -> None:
        if self._progress is not None:
            self._progress.stop()
            self._progress = None
            self._task = None
