"""
Blog Search CLI - command-line interface for the article store.

Commands:
- init-db: Create the database schema
- import: Load articles from a JSON file
- reindex: Rebuild the searchable text of every article
- search: Ranked search with category and tag filters
- show: Display one article with its neighbours and similar articles
- similar: List articles similar to one article
- sidebar: Display categories, tags and recent articles
- stats: Display store statistics
- serve: Run the HTTP API
"""

# Load environment variables before any other imports
# This ensures production paths are available to config modules
from pathlib import Path
from dotenv import load_dotenv

env_path = Path.cwd() / '.env'
if env_path.exists():
    load_dotenv(env_path)

# Standard library imports
import sys
import logging

# Third-party imports
import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from config.search_config import API_CONFIG, DATABASE_PATH, LOG_LEVEL
from blog_search.search.errors import ArticleNotFound, SearchError
from blog_search.search.models import SearchRequest
from blog_search.search.search_engine import SearchEngine
from blog_search.storage.article_storage import ArticleStorage
from blog_search.storage.database import init_database

console = Console()

# Configure logging
logging.basicConfig(
    level=LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


def _fail(message: str, error: Exception):
    console.print(f"[red]{message}: {escape(str(error))}[/red]\n")
    if LOG_LEVEL == "DEBUG":
        import traceback
        console.print(traceback.format_exc())
    sys.exit(1)


def _open_engine(db_path: str) -> SearchEngine:
    return SearchEngine(init_database(db_path))


def _article_table(title: str, articles) -> Table:
    table = Table(title=title)
    table.add_column("ID", justify="right", style="dim")
    table.add_column("Title", style="cyan", max_width=50)
    table.add_column("Date", style="blue")
    table.add_column("Category", justify="right", style="yellow")

    for article in articles:
        table.add_row(
            str(article.id),
            article.title,
            article.date.isoformat(),
            str(article.category_id or '')
        )
    return table


@click.group()
def cli():
    """Blog Search CLI - Manage the article store and run searches."""
    pass


# ============================================================================
# Database Commands
# ============================================================================

@cli.command(name='init-db')
@click.option('--db-path', '-d', default=DATABASE_PATH, help='Database path')
def init_db(db_path):
    """Initialize the database schema."""
    console.print("\n[bold cyan]Initializing Database[/bold cyan]\n")

    try:
        db = init_database(db_path)
        db.close()
        console.print(f"[green]✓[/green] Database initialized at: {db_path}")
        console.print("[green]✓[/green] Schema created successfully\n")
    except Exception as e:
        _fail("Error initializing database", e)


@cli.command(name='import')
@click.argument('file', type=click.Path(exists=True, dir_okay=False))
@click.option('--db-path', '-d', default=DATABASE_PATH, help='Database path')
def import_articles(file, db_path):
    """
    Import articles from a JSON file.

    The file holds a list of articles (or {"articles": [...]}) with title,
    date, summary, category, tags and content fields.
    """
    console.print(f"\n[bold cyan]Importing articles from {file}[/bold cyan]\n")

    try:
        db = init_database(db_path)
        storage = ArticleStorage(db.connect(), db.scorer.ranker)
        stats = storage.import_file(file)
        db.close()
    except Exception as e:
        _fail("Error importing articles", e)

    table = Table(title="Import Results")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Articles Saved", str(stats['saved']))
    table.add_row("Articles Skipped", str(stats['errors']))

    console.print(table)
    console.print()


@cli.command()
@click.option('--db-path', '-d', default=DATABASE_PATH, help='Database path')
def reindex(db_path):
    """Rebuild the searchable text of every article."""
    try:
        db = init_database(db_path)
        count = ArticleStorage(db.connect(), db.scorer.ranker).reindex()
        db.close()
    except Exception as e:
        _fail("Error reindexing", e)

    console.print(f"\n[green]✓[/green] Reindexed {count} articles\n")


# ============================================================================
# Search Commands
# ============================================================================

@cli.command()
@click.argument('term', required=False, default='')
@click.option('--category', '-c', default='0', help='Category ID (0 for all)')
@click.option('--tag', '-t', 'tags', multiple=True, help='Tag ID, repeatable')
@click.option('--page', '-p', default='1', help='Page number')
@click.option('--db-path', '-d', default=DATABASE_PATH, help='Database path')
def search(term, category, tags, page, db_path):
    """
    Search articles.

    Example usage:
        blog-search search "cafe recipes"
        blog-search search --tag 2 --tag 5
        blog-search search "travel" --category 3 --page 2
    """
    request = SearchRequest.from_params(term=term, category=category, tags=','.join(tags), page=page)

    console.print(f"\n[bold cyan]Searching for:[/bold cyan] '{escape(request.term)}'\n")

    if request.category or request.tags:
        console.print("[bold]Active filters:[/bold]")
        if request.category:
            console.print(f"  • category: {request.category}")
        if request.tags:
            console.print(f"  • tags: {', '.join(str(t) for t in request.tags)}")
        console.print()

    try:
        result = _open_engine(db_path).search_page(request)
    except SearchError as e:
        _fail("Search error", e)

    console.print(
        f"[bold green]Found {result.total_matching_rows} articles[/bold green] "
        f"(page {result.page} of {result.pages})\n"
    )

    if not result.results:
        console.print("[yellow]No results found. Try adjusting your term or filters.[/yellow]\n")
        return

    table = Table()
    table.add_column("#", justify="right", style="dim")
    table.add_column("ID", justify="right")
    table.add_column("Title", style="cyan", max_width=50)
    table.add_column("Date", style="blue")
    table.add_column("Tags", justify="right", style="yellow")
    table.add_column("Text", justify="right", style="green")
    table.add_column("Fuzzy", justify="right", style="green")

    first = (result.page - 1) * result.page_size
    for i, ranked in enumerate(result.results, first + 1):
        table.add_row(
            str(i),
            str(ranked.article.id),
            ranked.article.title,
            ranked.article.date.isoformat(),
            str(ranked.tag_match_count),
            f"{ranked.text_rank:.4f}",
            f"{ranked.fuzzy_score:.4f}"
        )

    console.print(table)
    console.print()


@cli.command()
@click.argument('article_id', type=int)
@click.option('--db-path', '-d', default=DATABASE_PATH, help='Database path')
def similar(article_id, db_path):
    """List articles similar to ARTICLE_ID."""
    try:
        articles = _open_engine(db_path).similar_articles(article_id)
    except ArticleNotFound as e:
        _fail("Not found", e)
    except SearchError as e:
        _fail("Recommendation error", e)

    if not articles:
        console.print("\n[yellow]No similar articles.[/yellow]\n")
        return

    console.print()
    console.print(_article_table(f"Similar to article {article_id}", articles))
    console.print()


@cli.command()
@click.argument('article_id', type=int)
@click.option('--db-path', '-d', default=DATABASE_PATH, help='Database path')
def show(article_id, db_path):
    """Display one article with its neighbours and similar articles."""
    try:
        engine = _open_engine(db_path)
        detail = engine.get_article(article_id)
        related = engine.similar_articles(article_id)
    except ArticleNotFound as e:
        _fail("Not found", e)
    except SearchError as e:
        _fail("Error loading article", e)

    article = detail.article
    console.print(f"\n[bold cyan]{article.title}[/bold cyan]")
    console.print(
        f"[dim]{article.date.isoformat()} • "
        f"{detail.category.name if detail.category else 'Uncategorized'} • "
        f"{', '.join(t.name for t in detail.tags) or 'no tags'}[/dim]\n"
    )
    if article.summary:
        console.print(f"{article.summary}\n")

    if detail.previous_article:
        console.print(f"[dim]← {detail.previous_article.title} ({detail.previous_article.id})[/dim]")
    if detail.next_article:
        console.print(f"[dim]→ {detail.next_article.title} ({detail.next_article.id})[/dim]")

    if related:
        console.print()
        console.print(_article_table("Similar Articles", related))
    console.print()


@cli.command()
@click.option('--db-path', '-d', default=DATABASE_PATH, help='Database path')
def sidebar(db_path):
    """Display categories, tags and the most recent articles."""
    try:
        panel = _open_engine(db_path).side_panel()
    except SearchError as e:
        _fail("Error reading side panel", e)

    console.print()
    console.print("[bold]Categories:[/bold] " + (", ".join(f"{c.name} ({c.id})" for c in panel.categories) or "none"))
    console.print("[bold]Tags:[/bold] " + (", ".join(f"{t.name} ({t.id})" for t in panel.tags) or "none"))
    console.print()
    console.print(_article_table("Recent Articles", panel.recent))
    console.print()


@cli.command()
@click.option('--db-path', '-d', default=DATABASE_PATH, help='Database path')
def stats(db_path):
    """Display store statistics."""
    try:
        statistics = _open_engine(db_path).get_stats()
    except SearchError as e:
        _fail("Error reading statistics", e)

    table = Table(title="Blog Search Statistics")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Total Articles", str(statistics['total_articles']))
    table.add_row("Categories", str(statistics['categories_count']))
    table.add_row("Tags", str(statistics['tags_count']))
    table.add_row("Earliest Article", statistics['date_range']['earliest'] or "N/A")
    table.add_row("Latest Article", statistics['date_range']['latest'] or "N/A")

    console.print()
    console.print(table)
    console.print()


# ============================================================================
# Server Command
# ============================================================================

@cli.command()
@click.option('--host', default=API_CONFIG['host'], help='Bind address')
@click.option('--port', default=API_CONFIG['port'], type=int, help='Bind port')
def serve(host, port):
    """Run the HTTP API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "blog_search.api.main:app",
        host=host,
        port=port,
        reload=API_CONFIG['reload'],
        log_level=API_CONFIG['log_level']
    )


if __name__ == '__main__':
    cli()
