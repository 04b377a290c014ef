import asyncio
import json
from dataclasses import asdict
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from tqdm import tqdm

from .core import config
from .core.api import ApiClient, ApiError
from .core.chat import ChatSession
from .core.config import ApiConfig
from .core.log import setup_logging
from .core.metrics import (filter_speakers, format_percent, momentum_arrow, momentum_style,
                           sentiment_style, speaker_sentiment_label, top_speakers,
                           utterance_sentiment_label)
from .core.models import Speaker, Trend
from .core.pager import UtterancePager
from .core.params import SENTIMENT_BUCKETS, FilterState
from .core.views import load_overview, load_speakers, load_trends

app = typer.Typer(help="Townhall Insights CLI")
console = Console()


def make_client() -> ApiClient:
    return ApiClient(ApiConfig.from_env())


def _fail(message: str):
    console.print(f"[red]{message}[/red]")
    raise typer.Exit(1)


def _filters(search: str, speaker: str, department: str, region: str, sentiment: str) -> FilterState:
    if sentiment not in SENTIMENT_BUCKETS:
        _fail(f"--sentiment must be one of: {', '.join(SENTIMENT_BUCKETS)}")
    return FilterState(search_text=search, speaker=speaker, department=department, region=region, sentiment=sentiment)


@app.callback()
def main(log_level: str = typer.Option(config.LOG_LEVEL, help="Logging level")):
    setup_logging(log_level)


def _trends_table(trends: List[Trend], title: str = "Trends") -> Table:
    table = Table(title=title)
    table.add_column("Topic", style="cyan")
    table.add_column("Momentum")
    table.add_column("Meetings", justify="right")
    table.add_column("Sentiment", justify="right")
    table.add_column("Novelty", justify="right")
    for t in trends:
        arrow = f"[{momentum_style(t.momentum)}]{momentum_arrow(t.momentum)} {t.momentum}[/]"
        sent = f"[{sentiment_style(t.avg_sentiment)}]{format_percent(t.avg_sentiment)}[/]"
        table.add_row(escape(t.name), arrow, str(t.meetings_count), sent, format_percent(t.novelty_score, 0))
    return table


def _speakers_table(speakers: List[Speaker], title: str = "Speakers") -> Table:
    table = Table(title=title)
    table.add_column("Speaker", style="cyan")
    table.add_column("Department", style="magenta")
    table.add_column("Region")
    table.add_column("Mentions", justify="right")
    table.add_column("Sentiment", justify="right")
    for s in speakers:
        sent = f"[{sentiment_style(s.avg_sentiment)}]{format_percent(s.avg_sentiment)} ({speaker_sentiment_label(s.avg_sentiment)})[/]"
        table.add_row(escape(s.display_name), escape(s.department), escape(s.region), str(s.mentions), sent)
    return table


async def _overview():
    async with make_client() as client:
        return await load_overview(client)


@app.command()
def overview():
    view = asyncio.run(_overview())
    if view.error:
        console.print(f"[red]Failed to fetch dashboard data: {view.error}[/red]")
    m = view.metrics
    cards = Table(title="Overview", show_header=False)
    cards.add_column("Metric", style="cyan")
    cards.add_column("Value", justify="right")
    cards.add_row("Meetings held", str(m.meetings_held))
    cards.add_row("Meetings (last quarter)", str(m.quarterly_meetings))
    cards.add_row("Topics", str(m.total_topics))
    cards.add_row("Active speakers", str(m.active_speakers))
    cards.add_row("Avg speaker sentiment", f"{m.avg_speaker_sentiment}%")
    cards.add_row("Utterances", str(m.total_utterances))
    cards.add_row("Avg utterance sentiment", f"{m.avg_utterance_sentiment}%")
    cards.add_row("Regions", str(m.unique_regions))
    cards.add_row("Departments", str(m.unique_departments))
    console.print(cards)
    if view.error:
        raise typer.Exit(1)

    if view.trends.trends:
        console.print(_trends_table(view.trends.trends[:5], title="Top trends"))
    else:
        console.print("No trending topics found.")
    top = top_speakers(view.speakers.results)
    if top:
        console.print(_speakers_table(top, title="Top speakers"))
    else:
        console.print("No speakers found.")


async def _trends():
    async with make_client() as client:
        return await load_trends(client)


@app.command()
def trends():
    view = asyncio.run(_trends())
    if view.error:
        _fail(f"Failed to fetch trends: {view.error}")
    if view.empty:
        console.print("No trending topics found.")
        raise typer.Exit(0)
    d = view.data
    console.print(_trends_table(d.trends, title=f"Trends {d.window_start} – {d.window_end}".strip(" –")))


async def _speakers():
    async with make_client() as client:
        return await load_speakers(client)


@app.command()
def speakers(search: str = typer.Option("", help="Match on name or department"),
             department: str = typer.Option("all"),
             region: str = typer.Option("all")):
    view = asyncio.run(_speakers())
    if view.error:
        _fail(f"Failed to fetch speakers: {view.error}")
    rows = filter_speakers(view.data.results, search=search, department=department, region=region)
    if not rows:
        console.print("No speakers match the current filters.")
        raise typer.Exit(0)
    console.print(_speakers_table(rows))


def _print_utterances(pager: UtterancePager, start: int = 0):
    for (_, pos), u in pager.keyed_items():
        if pos < start:
            continue
        label = utterance_sentiment_label(u.sentiment_score)
        console.print(f"[bold cyan]{escape(u.speaker)}[/bold cyan] [dim]{escape(u.department)} · {escape(u.region)} · {u.start_ts}[/dim] "
                      f"[{sentiment_style(u.sentiment_score)}]{label}[/]")
        console.print(f"  {escape(u.content)}")
        if u.topics:
            console.print(f"  [magenta]{escape(', '.join(u.topics))}[/magenta]")


async def _utterances(filters: FilterState, page_size: int, pages: int, interactive: bool):
    async with make_client() as client:
        pager = UtterancePager(client, filters=filters, page_size=page_size)
        try:
            await pager.reset_and_fetch()
            _print_utterances(pager)
            shown = len(pager.state.items)
            loaded = 1
            while pager.state.has_more:
                if interactive:
                    if not typer.confirm(f"Showing {shown} of {pager.state.total_count}. Load more?", default=True):
                        break
                elif loaded >= pages:
                    break
                await pager.load_more()
                _print_utterances(pager, start=shown)
                shown = len(pager.state.items)
                loaded += 1
        finally:
            pager.close()
        return pager


@app.command()
def utterances(search: str = typer.Option("", help="Free-text search"),
               speaker: str = typer.Option("all"),
               department: str = typer.Option("all"),
               region: str = typer.Option("all"),
               sentiment: str = typer.Option("all", help="all|positive|negative|neutral"),
               page_size: int = typer.Option(config.PAGE_SIZE, min=1),
               pages: int = typer.Option(1, min=1, help="Pages to load"),
               interactive: bool = typer.Option(False, help="Ask before loading each further page")):
    filters = _filters(search, speaker, department, region, sentiment)
    try:
        pager = asyncio.run(_utterances(filters, page_size, pages, interactive))
    except ApiError as e:
        _fail(f"Failed to fetch utterances: {e}")
    st = pager.state
    if not st.items:
        console.print("No utterances found. Try adjusting your search criteria or filters.")
    else:
        console.print(f"[green]Showing {len(st.items)} of {st.total_count} utterances[/green]")


async def _export(out: Path, filters: FilterState, page_size: int) -> int:
    async with make_client() as client:
        pager = UtterancePager(client, filters=filters, page_size=page_size)
        written = 0
        try:
            await pager.reset_and_fetch()
            with open(out, "w", encoding="utf-8") as f, tqdm(total=pager.state.total_count or None, unit="utt") as bar:
                while True:
                    for u in pager.state.items[written:]:
                        f.write(json.dumps(asdict(u)) + "\n")
                    bar.update(len(pager.state.items) - written)
                    written = len(pager.state.items)
                    if not await pager.load_more():
                        break
        finally:
            pager.close()
        return written


@app.command()
def export(out: Path = typer.Argument(..., help="Output .jsonl file"),
           search: str = typer.Option(""),
           speaker: str = typer.Option("all"),
           department: str = typer.Option("all"),
           region: str = typer.Option("all"),
           sentiment: str = typer.Option("all"),
           page_size: int = typer.Option(100, min=1)):
    filters = _filters(search, speaker, department, region, sentiment)
    try:
        n = asyncio.run(_export(out, filters, page_size))
    except ApiError as e:
        _fail(f"Export failed: {e}")
    console.print(f"[bold green]Wrote {n} utterances to {out}[/bold green]")


async def _ask(question: str, context: Optional[str]):
    async with make_client() as client:
        return await client.chat_query(question, context=context)


@app.command()
def ask(question: str, context: Optional[str] = typer.Option(None, help="Previous message to use as context")):
    try:
        resp = asyncio.run(_ask(question, context))
    except ApiError as e:
        _fail(str(e))
    console.print(resp.answer)
    if resp.sources:
        console.print("\n[dim]Sources:[/dim]")
        for s in resp.sources:
            console.print(f"[dim]• {s}[/dim]")
    console.print(f"[dim]Confidence: {format_percent(resp.confidence, 0)}[/dim]")


async def _chat_loop():
    async with make_client() as client:
        session = ChatSession(client)
        while True:
            text = console.input("[bold cyan]you> [/bold cyan]")
            if text.strip() in ("exit", "quit"):
                break
            reply = await session.send(text)
            if reply is None:
                continue
            style = "red" if reply.error else "green"
            console.print(f"[{style}]assistant>[/{style}] {reply.content}")


@app.command()
def chat():
    try:
        asyncio.run(_chat_loop())
    except (EOFError, KeyboardInterrupt):
        console.print()


if __name__ == "__main__":
    app()
