import asyncio
import inspect
import logging

import typer
from dotenv import load_dotenv
from InquirerPy import inquirer

load_dotenv()

from autoliquid_indexer.app.config import settings  # noqa: E402
from autoliquid_indexer.app.infrastructure.metrics import start_metrics_server  # noqa: E402
from autoliquid_indexer.app.interface.tasks import TASKS  # noqa: E402

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

app = typer.Typer()
indexer_app = typer.Typer(help="cli for indexing Bluefin positions from Sui checkpoints.")
app.add_typer(indexer_app, name="indexer")


def _optional_int(value: str) -> int | None:
    return int(value) if value.strip() else None


@indexer_app.command("run")
def run(
    metrics: bool = typer.Option(False, "--metrics", help="Expose prometheus metrics on METRICS_PORT."),
) -> None:
    if metrics:
        start_metrics_server(settings.metrics_port)

    task_name = inquirer.select(
        message="Select task:",
        choices=list(TASKS.keys()),
        pointer="❯",
        instruction="Use ↑/↓ to move, Enter to select",
    ).execute()

    task = TASKS[task_name]
    params = inspect.signature(task).parameters
    kwargs: dict[str, object] = {}

    if "prefix" in params:
        kwargs["prefix"] = inquirer.text(
            message="Task prefix:",
            default=settings.indexer_task_prefix,
        ).execute()

    if "live_start_checkpoint" in params:
        kwargs["live_start_checkpoint"] = int(
            inquirer.text(message="Live task start checkpoint:").execute()
        )

    if "start_checkpoint" in params:
        kwargs["start_checkpoint"] = _optional_int(
            inquirer.text(
                message="Backfill start checkpoint (empty = START_CHECKPOINT):",
                default="",
            ).execute()
        )

    if "sender" in params:
        kwargs["sender"] = inquirer.text(message="Sender address (0x...):").execute()

    if "task_name" in params:
        kwargs["task_name"] = inquirer.text(message="Task name:").execute()

    if "parts" in params:
        kwargs["parts"] = int(inquirer.text(message="Number of ranges:", default="2").execute())

    asyncio.run(task(**kwargs))  # type: ignore


if __name__ == "__main__":
    typer.echo(f"--- {settings.project_name}: Bluefin Indexer CLI ---")
    app()
