"""CLI commands for uniport.

Commands:
- init-db: Create the database schema
- create-user: Create a student, lecturer or admin account
- serve: Run the Web API with uvicorn
- import-questions: Bulk load a question bank from YAML
- gpa: Show a student's GPA per semester and CGPA
- transcript: Print a student's transcript
"""

from pathlib import Path

import typer
import yaml
from rich.console import Console
from rich.table import Table

from uniport.config.app_config import load_app_config
from uniport.core.admin import AdminError, import_questions as do_import_questions
from uniport.core.auth import AuthError, create_user as do_create_user
from uniport.core.gpa import class_of_degree, cumulative_gpa, load_course_results
from uniport.core.grading import format_semester
from uniport.core.results import build_transcript
from uniport.db.database import get_db_path, init_db
from uniport.db.users_repository import UserRecord, get_user_by_matric_no

app = typer.Typer(
    name="uniport",
    help="University academic portal: registration, results, GPA and CBT practice.",
    no_args_is_help=True,
)

console = Console()


def _open_db(db: str | None) -> None:
    """Select the database (option or configured path) and ensure the schema."""
    init_db(Path(db) if db else load_app_config().db_path)


def _get_user_or_exit(matric_no: str) -> UserRecord:
    user = get_user_by_matric_no(matric_no)
    if user is None:
        console.print(f"[red]✗ No user with matric number {matric_no}[/red]")
        raise typer.Exit(code=1)
    return user


@app.command(name="init-db")
def init_database(
    db: str | None = typer.Option(None, "--db", help="Database file (default from config)"),
) -> None:
    """Create the database and its tables."""
    _open_db(db)
    console.print(f"[green]✓ Database ready[/green] {get_db_path()}")


@app.command(name="create-user")
def create_user(
    matric_no: str = typer.Argument(..., help="Matric number (students) or staff number"),
    email: str = typer.Option(..., "--email", "-e", help="Email address"),
    password: str = typer.Option(..., "--password", "-p", help="Password (min 6 chars)"),
    first_name: str = typer.Option(..., "--first-name", help="First name"),
    last_name: str = typer.Option(..., "--last-name", help="Last name"),
    role: str = typer.Option("student", "--role", "-r", help="student, lecturer or admin"),
    department: str = typer.Option("", "--department", "-d", help="Department"),
    level: int = typer.Option(100, "--level", "-l", help="Level (students)"),
    db: str | None = typer.Option(None, "--db", help="Database file (default from config)"),
) -> None:
    """Create a user account."""
    _open_db(db)
    try:
        user = do_create_user(
            matric_no=matric_no,
            email=email,
            password=password,
            first_name=first_name,
            last_name=last_name,
            role=role,
            department=department,
            level=level,
        )
    except AuthError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)

    console.print(f"[green]✓ Created {user.role}[/green] {user.full_name}")
    console.print(f"  [dim]id:[/dim]        {user.id}")
    console.print(f"  [dim]matric_no:[/dim] {user.matric_no}")


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address"),
    port: int = typer.Option(8000, "--port", help="Port"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
) -> None:
    """Run the Web API."""
    import uvicorn

    uvicorn.run("uniport.web.api:app", host=host, port=port, reload=reload)


@app.command(name="import-questions")
def import_questions(
    file: str = typer.Argument(..., help="YAML file with a 'questions' list"),
    author: str = typer.Option(..., "--author", "-a", help="Staff number of the author"),
    db: str | None = typer.Option(None, "--db", help="Database file (default from config)"),
) -> None:
    """Bulk load questions into the question bank.

    Every question is validated before any is stored.
    """
    path = Path(file).expanduser()
    if not path.exists():
        console.print(f"[red]✗ File not found: {path}[/red]")
        raise typer.Exit(code=1)

    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    entries = data.get("questions", []) if isinstance(data, dict) else data
    if not isinstance(entries, list) or not entries:
        console.print("[yellow]⚠ No questions found in file[/yellow]")
        raise typer.Exit(code=1)

    _open_db(db)
    user = _get_user_or_exit(author)
    try:
        count = do_import_questions(entries, user)
    except AdminError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)

    console.print(f"[green]✓ Imported {count} question(s)[/green]")


@app.command()
def gpa(
    matric_no: str = typer.Argument(..., help="Student matric number"),
    db: str | None = typer.Option(None, "--db", help="Database file (default from config)"),
) -> None:
    """Show GPA per semester and the CGPA."""
    _open_db(db)
    student = _get_user_or_exit(matric_no)
    result = cumulative_gpa(load_course_results(student.id))

    if not result.semesters:
        console.print(f"[yellow]⚠ No graded courses for {matric_no}[/yellow]")
        return

    table = Table(show_header=True, header_style="bold", title=student.full_name)
    table.add_column("Semester", style="cyan")
    table.add_column("Courses", justify="right")
    table.add_column("Credits", justify="right")
    table.add_column("Quality points", justify="right")
    table.add_column("GPA", justify="right")

    for semester in result.semesters:
        table.add_row(
            format_semester(semester.semester),
            str(len(semester.courses)),
            str(semester.total_credits),
            f"{semester.total_quality_points:.2f}",
            f"{semester.gpa:.2f}",
        )

    console.print(table)
    console.print(
        f"[bold]CGPA:[/bold] {result.cgpa:.2f} "
        f"({result.total_credits} credits) - {class_of_degree(result.cgpa)}"
    )


@app.command()
def transcript(
    matric_no: str = typer.Argument(..., help="Student matric number"),
    db: str | None = typer.Option(None, "--db", help="Database file (default from config)"),
) -> None:
    """Print a student's transcript grouped by academic session."""
    _open_db(db)
    student = _get_user_or_exit(matric_no)
    report = build_transcript(student, load_course_results(student.id))

    console.print(f"[bold]{student.full_name}[/bold] ({student.matric_no})")
    console.print(f"  [dim]department:[/dim] {student.department}  [dim]level:[/dim] {student.level}")

    for session in report.academic_sessions:
        for label, block in (
            ("First Semester", session["first_semester"]),
            ("Second Semester", session["second_semester"]),
        ):
            if not block["courses"]:
                continue
            table = Table(
                show_header=True,
                header_style="bold",
                title=f"{label} {session['session']}",
            )
            table.add_column("Code", style="cyan")
            table.add_column("Title")
            table.add_column("Units", justify="right")
            table.add_column("Grade", justify="center")
            table.add_column("Points", justify="right")
            for course in block["courses"]:
                table.add_row(
                    course["course_code"],
                    course["course_title"],
                    str(course["credit_units"]),
                    course["grade"],
                    f"{course['quality_points']:.1f}",
                )
            console.print(table)
            console.print(f"  GPA: {block['gpa']:.2f} ({block['total_credits']} credits)")

    overall = report.overall
    console.print(
        f"\n[bold]CGPA:[/bold] {overall['cgpa']:.2f} "
        f"({overall['total_credits']} credits) - {overall['class_of_degree']}"
    )


if __name__ == "__main__":
    app()
