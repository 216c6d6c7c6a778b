"""
Typer CLI for deutsch-meister.

Commands:
    deutsch-meister generate                 - Generate a story, translations and quiz
    deutsch-meister generate --random        - Same, with a model-chosen theme
    deutsch-meister saved list               - List saved texts
    deutsch-meister saved show <n>           - Show a saved text (and retake its quiz)
    deutsch-meister saved delete <n>         - Delete a saved text
    deutsch-meister saved export             - Export saved texts to a text file
    deutsch-meister lists list [n]           - Show favorite lists (or one list's words)
    deutsch-meister lists create <name>      - Create a favorite list
    deutsch-meister lists delete <n>         - Delete a favorite list
    deutsch-meister lists add <n> <de> <tr>  - Add a word to a list
    deutsch-meister lists remove <n> <de>    - Remove a word from a list
    deutsch-meister word translate <term>    - Translate a word or short phrase
    deutsch-meister word explain <term>      - Explain a word in simple German
    deutsch-meister cloze text <n>           - Fill-in-the-blank over a saved text
    deutsch-meister cloze list <n>           - Learning mode over a favorite list

Usage:
    deutsch-meister generate --level B1 --theme "Ein Tag in Berlin" --words 200
    deutsch-meister word translate Fernweh --add 1
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Optional

import typer
from loguru import logger
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table

from config import get_settings
from deutsch_meister.generation import ContentService, GenerationError
from deutsch_meister.models import (
    MOODS,
    CEFRLevel,
    ExerciseRequest,
    FavoriteList,
    FavoriteWord,
    SavedText,
)
from deutsch_meister.storage import LibraryRepository, LocalStore
from deutsch_meister.study import ExerciseOrchestrator, Phase
from deutsch_meister.study.cloze import ClozeSession, split_cloze
from deutsch_meister.study.library import preview, sorted_words

console = Console()

app = typer.Typer(
    help="deutsch-meister: German reading practice with Turkish support",
    no_args_is_help=True,
)
saved_app = typer.Typer(help="Saved texts archive", no_args_is_help=True)
lists_app = typer.Typer(help="Favorite word lists", no_args_is_help=True)
word_app = typer.Typer(help="Word translation and explanation", no_args_is_help=True)
cloze_app = typer.Typer(help="Fill-in-the-blank exercises", no_args_is_help=True)

app.add_typer(saved_app, name="saved")
app.add_typer(lists_app, name="lists")
app.add_typer(word_app, name="word")
app.add_typer(cloze_app, name="cloze")

OPTION_LETTERS = "ABCD"
CHOICES_REQUEST = "?"


# ========================================
# Helpers
# ========================================


def _build_orchestrator() -> ExerciseOrchestrator:
    """Wire settings, local store and content service together."""
    settings = get_settings()
    repository = LibraryRepository(LocalStore(settings.data_dir))
    return ExerciseOrchestrator(ContentService(settings=settings), repository, settings=settings)


def _fail(message: str) -> None:
    console.print(f"[red]{escape(message)}[/red]")
    raise typer.Exit(code=1)


def _pick(items: list, number: int, kind: str):
    if not 1 <= number <= len(items):
        _fail(f"No {kind} #{number} (have {len(items)})")
    return items[number - 1]


def _show_story(orchestrator: ExerciseOrchestrator) -> None:
    state = orchestrator.state
    title = f"[bold]{escape(state.theme)}[/bold] ({state.level.value})"
    console.print(Panel(escape(state.text), title=title, border_style="blue"))

    if state.translations:
        table = Table(title="Cümle Cümle Çeviri", show_lines=True)
        table.add_column("Deutsch", style="cyan")
        table.add_column("Türkçe", style="green")
        for pair in state.translations:
            table.add_row(escape(pair.german), escape(pair.turkish))
        console.print(table)


def _run_quiz(orchestrator: ExerciseOrchestrator) -> None:
    """Ask every question, then score and review the wrong answers."""
    quiz = orchestrator.state.quiz
    if not quiz:
        return

    console.print(f"\n[bold]Anlama Testi ({len(quiz)} soru)[/bold]")
    orchestrator.go_to_question(0)
    while True:
        index = orchestrator.state.current_question
        question = quiz[index]

        console.print(f"\n[bold]{index + 1}/{len(quiz)}[/bold] {escape(question.question)}")
        letters = OPTION_LETTERS[: len(question.options)]
        for letter, option in zip(letters, question.options):
            console.print(f"  {letter}) {escape(option)}")

        choice = Prompt.ask(
            "Cevabınız", choices=[*letters, *letters.lower()], show_choices=False
        ).upper()
        orchestrator.answer(index, question.options[letters.index(choice)])

        if orchestrator.next_question() == index:
            break

    score = orchestrator.submit_quiz()
    console.print(f"\n[bold]Puan: {score}/{len(quiz)}[/bold]")

    for item in orchestrator.quiz_review():
        given = escape(item.user_answer or "-")
        console.print(f"  [red]✗[/red] {escape(item.question)}")
        console.print(f"    [dim]Cevabınız:[/dim] {given}  [dim]Doğru:[/dim] [green]{escape(item.correct_answer)}[/green]")


def _render_cloze(session: ClozeSession) -> str:
    segments = split_cloze(session.exercise.cloze_text)
    parts = [escape(segments[0])]
    for i, segment in enumerate(segments[1:]):
        given = escape(session.user_answers[i]) or "___"
        parts.append(f"[bold yellow]\\[{i + 1}: {given}][/bold yellow]")
        parts.append(escape(segment))
    return "".join(parts)


async def _fill_cloze(session_of, answer, fetch_choices) -> ClozeSession:
    """
    Prompt for every blank; ``?`` requests multiple-choice options.

    Args:
        session_of: Returns the current ClozeSession
        answer: Records ``(index, value)``
        fetch_choices: Coroutine returning options for a blank, or None
    """
    session = session_of()
    console.print(Panel(_render_cloze(session), border_style="blue"))

    for index in range(session.exercise.blank_count):
        while True:
            value = Prompt.ask(f"Boşluk {index + 1} [dim](? = şıklar)[/dim]", default="")
            if value.strip() != CHOICES_REQUEST:
                break
            options = await fetch_choices(index)
            if options is None:
                console.print("[yellow]Şıklar alınamadı.[/yellow]")
                continue
            console.print("  " + "  ".join(f"{i + 1}) {escape(o)}" for i, o in enumerate(options)))
            picked = Prompt.ask("Seçim", choices=[str(i + 1) for i in range(len(options))])
            value = options[int(picked) - 1]
            break
        answer(index, value)

    return session_of()


def _show_cloze_results(session: ClozeSession) -> None:
    table = Table(title=f"Sonuç: {session.correct_count}/{session.exercise.blank_count}")
    table.add_column("#", style="dim")
    table.add_column("Cevabınız")
    table.add_column("Doğru", style="green")
    for i, (ok, given, expected) in enumerate(
        zip(session.results(), session.user_answers, session.exercise.answers), 1
    ):
        mark = "[green]✓[/green]" if ok else "[red]✗[/red]"
        table.add_row(str(i), f"{mark} {escape(given)}", escape(expected))
    console.print(table)


# ========================================
# GENERATE
# ========================================


@app.command("generate")
def generate(
    level: Optional[CEFRLevel] = typer.Option(None, "--level", "-l", help="CEFR level (A2, B1, B2, C1)"),
    theme: Optional[str] = typer.Option(None, "--theme", "-t", help="Story theme"),
    random_theme: bool = typer.Option(False, "--random", "-r", help="Let the model pick a theme"),
    words: Optional[int] = typer.Option(None, "--words", "-w", help="Approximate word count"),
    mood: str = typer.Option(MOODS[0], "--mood", "-m", help=f"One of: {', '.join(MOODS)}"),
    quiz: bool = typer.Option(True, "--quiz/--no-quiz", help="Take the quiz after reading"),
) -> None:
    """Generate a story with sentence translations and a comprehension quiz."""
    orchestrator = _build_orchestrator()
    settings = orchestrator.settings
    level = level or CEFRLevel(settings.default_level)
    words = words or settings.default_word_count

    if mood not in MOODS:
        _fail(f"Unknown mood '{mood}'. Choose one of: {', '.join(MOODS)}")
    if not settings.is_valid_word_count(words):
        _fail(
            f"Word count must be between {settings.min_word_count} and {settings.max_word_count} "
            f"in steps of {settings.word_count_step}"
        )

    with console.status("[cyan]Metin oluşturuluyor...[/cyan]"):
        if random_theme:
            asyncio.run(orchestrator.generate_random(level, mood, words))
        else:
            if not theme or not theme.strip():
                _fail("Provide --theme or use --random")
            request = ExerciseRequest(level=level, theme=theme, word_count=words, mood=mood)
            asyncio.run(orchestrator.generate(request))

    state = orchestrator.state
    if not state.text:
        _fail(state.error or "No text was generated")

    _show_story(orchestrator)
    if state.error:
        console.print(f"[red]{escape(state.error)}[/red]")

    if quiz and state.phase == Phase.READY:
        _run_quiz(orchestrator)

    if Confirm.ask("\nMetni kaydet?", default=False):
        orchestrator.save_current_text()
        console.print("[green]Kaydedildi.[/green]")


# ========================================
# SAVED TEXTS
# ========================================


@saved_app.command("list")
def saved_list() -> None:
    """List the saved-text archive, newest first."""
    orchestrator = _build_orchestrator()
    if not orchestrator.saved_texts:
        console.print("[dim]Henüz kaydedilmiş metin yok.[/dim]")
        return

    table = Table(title="Kaydedilen Metinler")
    table.add_column("#", style="dim")
    table.add_column("Başlık", style="cyan")
    table.add_column("Seviye")
    table.add_column("Önizleme", style="dim")
    for i, text in enumerate(orchestrator.saved_texts, 1):
        table.add_row(str(i), escape(text.title), text.level.value, escape(preview(text.text)))
    console.print(table)


@saved_app.command("show")
def saved_show(
    number: int = typer.Argument(..., help="Entry number from 'saved list'"),
    quiz: bool = typer.Option(False, "--quiz", "-q", help="Retake the saved quiz"),
) -> None:
    """Show a saved text with its translations."""
    orchestrator = _build_orchestrator()
    saved: SavedText = _pick(orchestrator.saved_texts, number, "saved text")
    orchestrator.load_text(saved)

    _show_story(orchestrator)
    if quiz:
        _run_quiz(orchestrator)


@saved_app.command("delete")
def saved_delete(number: int = typer.Argument(..., help="Entry number from 'saved list'")) -> None:
    """Delete a saved text."""
    orchestrator = _build_orchestrator()
    saved: SavedText = _pick(orchestrator.saved_texts, number, "saved text")
    orchestrator.delete_text(saved.text)
    console.print(f"[green]Silindi:[/green] {escape(saved.title)}")


@saved_app.command("export")
def saved_export(
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Target file"),
) -> None:
    """Export all saved texts to a plain-text file."""
    orchestrator = _build_orchestrator()
    path = orchestrator.export_texts(output)
    if path is None:
        console.print("[dim]Dışa aktarılacak metin yok.[/dim]")
        return
    console.print(f"[green]Dışa aktarıldı:[/green] {path}")


# ========================================
# FAVORITE LISTS
# ========================================


@lists_app.command("list")
def lists_list(
    number: Optional[int] = typer.Argument(None, help="Show the words of one list"),
) -> None:
    """Show favorite lists, or the words of one list in alphabetical order."""
    orchestrator = _build_orchestrator()

    if number is not None:
        favorite_list: FavoriteList = _pick(orchestrator.favorite_lists, number, "list")
        table = Table(title=escape(favorite_list.name))
        table.add_column("Deutsch", style="cyan")
        table.add_column("Türkçe", style="green")
        for word in sorted_words(favorite_list):
            table.add_row(escape(word.german), escape(word.turkish))
        console.print(table)
        return

    if not orchestrator.favorite_lists:
        console.print("[dim]Henüz liste yok.[/dim]")
        return

    table = Table(title="Favori Listeler")
    table.add_column("#", style="dim")
    table.add_column("Ad", style="cyan")
    table.add_column("Kelime", justify="right")
    for i, fl in enumerate(orchestrator.favorite_lists, 1):
        table.add_row(str(i), escape(fl.name), str(len(fl.words)))
    console.print(table)


@lists_app.command("create")
def lists_create(name: str = typer.Argument(..., help="List name")) -> None:
    """Create an empty favorite list."""
    orchestrator = _build_orchestrator()
    new_list = orchestrator.create_list(name)
    if new_list is None:
        _fail("List name must not be empty")
    console.print(f"[green]Liste oluşturuldu:[/green] {escape(new_list.name)}")


@lists_app.command("delete")
def lists_delete(number: int = typer.Argument(..., help="List number from 'lists list'")) -> None:
    """Delete a favorite list and its words."""
    orchestrator = _build_orchestrator()
    favorite_list: FavoriteList = _pick(orchestrator.favorite_lists, number, "list")
    if Confirm.ask(f"'{favorite_list.name}' silinsin mi?", default=False):
        orchestrator.delete_list(favorite_list.id)
        console.print("[green]Silindi.[/green]")


@lists_app.command("add")
def lists_add(
    number: int = typer.Argument(..., help="List number"),
    german: str = typer.Argument(..., help="German term"),
    turkish: str = typer.Argument(..., help="Turkish translation"),
) -> None:
    """Add a word to a list (duplicates are ignored)."""
    orchestrator = _build_orchestrator()
    favorite_list: FavoriteList = _pick(orchestrator.favorite_lists, number, "list")
    orchestrator.add_word(FavoriteWord(german=german, turkish=turkish), favorite_list.id)
    console.print(f"[green]Eklendi:[/green] {escape(german)} → {escape(favorite_list.name)}")


@lists_app.command("remove")
def lists_remove(
    number: int = typer.Argument(..., help="List number"),
    german: str = typer.Argument(..., help="German term"),
) -> None:
    """Remove a word from a list."""
    orchestrator = _build_orchestrator()
    favorite_list: FavoriteList = _pick(orchestrator.favorite_lists, number, "list")
    orchestrator.remove_word(german, favorite_list.id)
    console.print(f"[green]Çıkarıldı:[/green] {escape(german)}")


# ========================================
# WORDS
# ========================================


@word_app.command("translate")
def word_translate(
    term: str = typer.Argument(..., help="Word or short phrase"),
    add: Optional[int] = typer.Option(None, "--add", "-a", help="Add to list number"),
    new_list: Optional[str] = typer.Option(None, "--new-list", "-n", help="Add to a new list"),
) -> None:
    """Translate a word or short phrase into Turkish."""
    orchestrator = _build_orchestrator()
    if not orchestrator.is_selectable(term):
        _fail(
            f"Selections must be shorter than {orchestrator.settings.max_selection_chars} "
            f"characters and at most {orchestrator.settings.max_selection_words} words"
        )

    with console.status("[cyan]Çevriliyor...[/cyan]"):
        lookup = asyncio.run(orchestrator.select_word(term))

    console.print(f"[cyan]{escape(lookup.term)}[/cyan] → [green]{escape(lookup.translation)}[/green]")
    if orchestrator.is_word_in_favorites(lookup.term):
        console.print("[dim]★ Favorilerde[/dim]")

    if add is not None:
        favorite_list: FavoriteList = _pick(orchestrator.favorite_lists, add, "list")
        if not orchestrator.add_looked_up_word(favorite_list.id):
            _fail("Çeviri olmadan kelime eklenemez.")
        console.print(f"[green]Eklendi:[/green] {escape(favorite_list.name)}")
    elif new_list is not None:
        created = orchestrator.create_list_and_add(new_list)
        if created is None:
            _fail("Liste oluşturulamadı.")
        console.print(f"[green]Liste oluşturuldu ve eklendi:[/green] {escape(created.name)}")


@word_app.command("explain")
def word_explain(
    term: str = typer.Argument(..., help="German word"),
    level: Optional[CEFRLevel] = typer.Option(None, "--level", "-l", help="CEFR level of the explanation"),
) -> None:
    """Explain a word in simple German with example sentences."""
    orchestrator = _build_orchestrator()

    try:
        with console.status("[cyan]Açıklanıyor...[/cyan]"):
            explanation = asyncio.run(orchestrator.explain_word(term, level))
    except GenerationError as e:
        _fail(e.message)

    console.print(Panel(escape(explanation.explanation), title=f"[bold]{escape(term)}[/bold]", border_style="blue"))
    for example in explanation.examples:
        console.print(f"  • [italic]{escape(example)}[/italic]")


# ========================================
# CLOZE
# ========================================


@cloze_app.command("text")
def cloze_text(number: int = typer.Argument(..., help="Entry number from 'saved list'")) -> None:
    """Fill-in-the-blank exercise over a saved text."""
    orchestrator = _build_orchestrator()
    saved: SavedText = _pick(orchestrator.saved_texts, number, "saved text")
    orchestrator.load_text(saved)

    async def session() -> ClozeSession | None:
        await orchestrator.start_text_cloze()
        if orchestrator.state.phase != Phase.CLOZE_IN_PROGRESS:
            return None
        return await _fill_cloze(
            lambda: orchestrator.state.cloze,
            orchestrator.answer_blank,
            orchestrator.fetch_blank_choices,
        )

    result = asyncio.run(session())
    if result is None:
        _fail(orchestrator.state.error or "Cloze could not be started")

    orchestrator.check_cloze()
    _show_cloze_results(orchestrator.state.cloze)
    orchestrator.finish_cloze()


@cloze_app.command("list")
def cloze_list(number: int = typer.Argument(..., help="List number from 'lists list'")) -> None:
    """Learning mode: a short text built around the words of a favorite list."""
    orchestrator = _build_orchestrator()
    favorite_list: FavoriteList = _pick(orchestrator.favorite_lists, number, "list")

    async def session() -> ClozeSession | None:
        learning = await orchestrator.start_list_learning(favorite_list.id)
        if learning is None or learning.session is None:
            return None
        return await _fill_cloze(
            lambda: orchestrator.learning.session,
            orchestrator.answer_learning_blank,
            orchestrator.fetch_learning_choices,
        )

    result = asyncio.run(session())
    if result is None:
        error = orchestrator.learning.error if orchestrator.learning else None
        _fail(error or "Learning mode could not be started")

    orchestrator.check_learning()
    _show_cloze_results(orchestrator.learning.session)
    orchestrator.finish_learning()


# ========================================
# Entry Point
# ========================================


def main() -> None:
    """CLI entry point."""
    settings = get_settings()

    # Configure logging
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level,
        format="<level>{message}</level>",
    )

    app()


if __name__ == "__main__":
    main()
