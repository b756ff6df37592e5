"""Interactive CLI application for the student and the guardian."""
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.prompt import Prompt

from study_rpg.auth import login, list_users
from study_rpg.commands import (
    ClaimRequest, CompleteTaskCommand, GenerateProgramCommand, GenerateQuestionCommand,
    LoginCommand, NewBook, NewProgram, NewReward, NewTask, ProcessClaimCommand, parse,
)
from study_rpg.config import Config
from study_rpg.dashboard import get_progress_color, student_summary
from study_rpg.db import SQLiteRecordStore
from study_rpg.errors import InvalidCredentials, InvalidInput, NotFound, StudyRPGError
from study_rpg.generator import GeminiGenerator, motivation_message
from study_rpg.ledger import complete_task, get_user
from study_rpg.logging_config import setup_logging
from study_rpg.programs import (
    active_programs, add_book, add_task, create_program, generate_program, list_books, list_tasks,
    tasks_for_program,
)
from study_rpg.questions import check_answer, generate_question, get_questions
from study_rpg.review import weakest_first
from study_rpg.rewards import (
    add_reward, claims_for_user, list_rewards, pending_claims, process_claim, request_claim,
)
from study_rpg.seed import is_seeded, seed_all

console = Console()

STUDENT_COMMANDS = [
    ("tasks", "List study tasks"),
    ("complete", "Log a finished task"),
    ("quiz", "Answer generated questions"),
    ("rewards", "Reward catalog"),
    ("claim", "Ask for a reward"),
    ("claims", "My reward requests"),
    ("weak", "Weak topics"),
    ("dashboard", "Points, level and streak"),
    ("quit", "Exit"),
]

GUARDIAN_COMMANDS = [
    ("claims", "Pending reward requests"),
    ("decide", "Approve or reject a request"),
    ("reward", "Add a reward"),
    ("task", "Add a study task"),
    ("book", "Add a book"),
    ("books", "Study books"),
    ("programs", "Active programs"),
    ("program", "Create a program (manual or generated)"),
    ("question", "Generate a question"),
    ("users", "All users"),
    ("quit", "Exit"),
]


def ask_optional_int(prompt: str, default: str = "") -> int | None:
    value = Prompt.ask(prompt, default=default).strip()
    if not value:
        return None
    if not value.lstrip("-").isdigit():
        raise InvalidInput([f"{prompt}: expected a whole number, got {value!r}"])
    return int(value)


def show_welcome():
    console.print(Panel(
        "[bold]Study RPG[/bold]\n[dim]Exam prep with points, levels and rewards[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu(commands: list[tuple[str, str]]):
    console.print("\n[bold]Commands:[/bold]")
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<12}[/cyan] {desc}")


def pick(items: list, label: str):
    """Let the user choose an item by its 1-based position; None when left blank."""
    if not items:
        return None
    choice = Prompt.ask(f"{label} number (blank for none)", default="").strip()
    if not choice:
        return None
    if not choice.isdigit() or not 1 <= int(choice) <= len(items):
        raise NotFound(label.lower(), choice)
    return items[int(choice) - 1]


def cmd_tasks(store, user=None):
    tasks = list_tasks(store)
    if not tasks:
        console.print("[yellow]No tasks yet. Ask your guardian to add some.[/yellow]")
        return tasks
    table = Table(title="Study Tasks")
    table.add_column("#", justify="right")
    table.add_column("Title", style="cyan")
    table.add_column("Type")
    table.add_column("Topic")
    table.add_column("Minutes", justify="right")
    table.add_column("Difficulty", justify="right")
    for i, t in enumerate(tasks, 1):
        table.add_row(str(i), t.title, t.type, t.topic or "-", str(t.duration), str(t.difficulty))
    console.print(table)
    return tasks


def cmd_complete(store, user: dict, generator=None, exam: str = "MSÜ"):
    tasks = cmd_tasks(store)
    task = pick(tasks, "Task")
    payload = {
        "user_id": user["id"],
        "task_id": task.id if task else None,
        "duration": ask_optional_int("Minutes studied", default=str(task.duration) if task else ""),
        "net_count": ask_optional_int("Net correct answers (blank if none)"),
        "correct": Prompt.ask("Did you get it right?", choices=["y", "n"], default="y") == "y",
        "topic": Prompt.ask("Topic", default=(task.topic or "") if task else ""),
        "days_left": ask_optional_int("Days left to the exam (blank to skip)"),
    }
    command = parse(CompleteTaskCommand, payload)
    result = complete_task(
        store, command.user_id, command.task_id,
        duration=command.duration, net_count=command.net_count, correct=command.correct,
        topic=command.topic, days_left=command.days_left,
    )
    console.print(
        f"[green]+{result.points_earned} points[/green]  total [bold]{result.total_points}[/bold]"
        f"  level [bold]{result.new_level}[/bold]  streak [bold]{result.streak}[/bold]"
    )
    if result.leveled_up:
        console.print(f"[bold magenta]Level up! You reached level {result.new_level}.[/bold magenta]")
    if generator is not None:
        days_left = command.days_left if command.days_left is not None else 7
        message = motivation_message(
            generator, user["name"], result.new_level, result.streak, command.correct,
            days_left, exam,
        )
        console.print(f"[dim]{message}[/dim]")
    return result


def cmd_quiz(store, user: dict, generator=None):
    subject = Prompt.ask("Subject", default="Mathematics")
    questions = get_questions(store, generator, subject=subject, limit=5)
    if not questions:
        console.print("[yellow]No questions available![/yellow]")
        return 0, 0
    correct = 0
    for i, q in enumerate(questions, 1):
        console.print(f"\n[bold]Q{i}.[/bold] {q.question}\n")
        for j, option in enumerate(q.options):
            console.print(f"  [cyan]{j})[/cyan] {option}")
        answer = Prompt.ask("\nYour answer", choices=[str(j) for j in range(len(q.options))])
        outcome = check_answer(store, q.id, int(answer))
        if outcome["correct"]:
            console.print(f"[green]Correct! +{outcome['points']}[/green]")
            correct += 1
        else:
            console.print(f"[red]Incorrect.[/red] Answer: [green]{outcome['correct_answer']}[/green]")
        if outcome["explanation"]:
            console.print(f"[dim]{outcome['explanation']}[/dim]")
    console.print(f"\n[bold]Score: {correct}/{len(questions)}[/bold]")
    return correct, len(questions)


def cmd_rewards(store, user=None):
    rewards = list_rewards(store)
    if not rewards:
        console.print("[yellow]The reward catalog is empty.[/yellow]")
        return rewards
    table = Table(title="Rewards")
    table.add_column("#", justify="right")
    table.add_column("Reward", style="cyan")
    table.add_column("Cost", justify="right")
    table.add_column("Description")
    for i, r in enumerate(rewards, 1):
        table.add_row(str(i), f"{r.icon} {r.name}", str(r.cost), r.description)
    console.print(table)
    return rewards


def cmd_claim(store, user: dict):
    reward = pick(cmd_rewards(store), "Reward")
    if reward is None:
        return None
    command = parse(ClaimRequest, {"user_id": user["id"], "reward_id": reward.id})
    claim = request_claim(store, command.user_id, command.reward_id)
    console.print(f"[green]Request sent for {claim.reward_name}! Your guardian will review it.[/green]")
    return claim


def cmd_my_claims(store, user: dict):
    claims = claims_for_user(store, user["id"])
    if not claims:
        console.print("[dim]No reward requests yet.[/dim]")
        return
    table = Table(title="My Requests")
    table.add_column("Reward")
    table.add_column("Cost", justify="right")
    table.add_column("Status")
    colors = {"pending": "yellow", "approved": "green", "rejected": "red"}
    for c in claims:
        table.add_row(c.reward_name, str(c.cost), f"[{colors[c.status]}]{c.status}[/{colors[c.status]}]")
    console.print(table)


def cmd_weak(store, user: dict):
    weak = weakest_first(store, user["id"])
    if not weak:
        console.print("[green]No weak topics detected! Keep up the good work.[/green]")
        return
    table = Table(title="Weak Topics")
    table.add_column("Topic")
    table.add_column("Accuracy", justify="right")
    table.add_column("Attempts", justify="right")
    for w in weak:
        table.add_row(w["topic"], f"{w['accuracy'] * 100:.0f}%", str(w["total"]))
    console.print(table)


def cmd_dashboard(store, user: dict):
    s = student_summary(store, user["id"])
    color = get_progress_color(s["pct"])
    bar_filled = int(s["pct"] / 5)
    bar = f"[{color}]{'█' * bar_filled}{'░' * (20 - bar_filled)}[/{color}]"
    console.print(Panel(
        f"[bold]{s['name']}[/bold]  Level {s['level']} ({s['label']})",
        title="Dashboard", border_style="blue",
    ))
    console.print(f"\n  Points: [bold]{s['points']}[/bold] {bar} {s['to_next_level']} to next level")
    console.print(f"  Streak: [bold]{s['streak']}[/bold] days  |  "
                  f"Study time: [bold]{s['total_study_time']}[/bold] min  |  "
                  f"Tasks: [bold]{s['tasks_completed']}[/bold]  |  "
                  f"Accuracy: [bold]{s['accuracy']}%[/bold]  |  "
                  f"Pending rewards: [bold]{s['pending_claims']}[/bold]")
    if s["weak_topics"]:
        console.print(f"\n  [yellow]Recommendation: Focus on {s['weak_topics'][0]['topic']}[/yellow]")


def cmd_pending(store, user=None):
    pending = pending_claims(store)
    if not pending:
        console.print("[green]No pending requests.[/green]")
        return pending
    table = Table(title="Pending Requests")
    table.add_column("#", justify="right")
    table.add_column("Student")
    table.add_column("Reward", style="cyan")
    table.add_column("Cost", justify="right")
    table.add_column("Student Points", justify="right")
    for i, c in enumerate(pending, 1):
        table.add_row(str(i), c["username"], c["reward_name"], str(c["cost"]), str(c["user_points"]))
    console.print(table)
    return pending


def cmd_decide(store, user=None):
    claim = pick(cmd_pending(store), "Request")
    if claim is None:
        return None
    decision = Prompt.ask("Decision", choices=["approved", "rejected"])
    command = parse(ProcessClaimCommand, {
        "claim_id": claim["id"], "user_id": claim["user_id"], "decision": decision,
    })
    result = process_claim(store, command.claim_id, command.user_id, command.decision)
    console.print(f"[green]{result.reward_name}: {result.status}[/green]")
    return result


def cmd_add_reward(store, user=None):
    command = parse(NewReward, {
        "name": Prompt.ask("Reward name"),
        "cost": Prompt.ask("Cost in points"),
        "description": Prompt.ask("Description", default=""),
        "icon": Prompt.ask("Icon", default="🎁"),
    })
    reward = add_reward(store, command.name, command.cost, command.description, command.icon)
    console.print(f"[green]Added {reward.icon} {reward.name} ({reward.cost} points)[/green]")
    return reward


def cmd_add_task(store, user=None):
    program = pick(active_programs(store), "Program")
    command = parse(NewTask, {
        "title": Prompt.ask("Title"),
        "type": Prompt.ask("Type", choices=["video", "question", "theory"], default="question"),
        "duration": Prompt.ask("Minutes", default="30"),
        "base_points": Prompt.ask("Base points", default="10"),
        "difficulty": Prompt.ask("Difficulty multiplier", default="1"),
        "topic": Prompt.ask("Topic", default="") or None,
        "program_id": program.id if program else None,
    })
    task = add_task(store, **command.model_dump())
    console.print(f"[green]Added task {task.title}[/green]")
    return task


def cmd_add_book(store, user=None):
    command = parse(NewBook, {
        "title": Prompt.ask("Title"),
        "author": Prompt.ask("Author", default=""),
        "subject": Prompt.ask("Subject", default=""),
        "total_pages": Prompt.ask("Total pages", default="0"),
    })
    book = add_book(store, **command.model_dump())
    console.print(f"[green]Added book {book.title}[/green]")
    return book


def cmd_books(store, user=None):
    books = list_books(store)
    if not books:
        console.print("[yellow]No books yet.[/yellow]")
        return books
    table = Table(title="Books")
    table.add_column("Title", style="cyan")
    table.add_column("Author")
    table.add_column("Subject")
    table.add_column("Pages", justify="right")
    for b in books:
        table.add_row(b.title, b.author, b.subject, f"{b.current_page}/{b.total_pages}")
    console.print(table)
    return books


def cmd_programs(store, user=None):
    programs = active_programs(store)
    if not programs:
        console.print("[yellow]No active programs.[/yellow]")
        return programs
    table = Table(title="Active Programs")
    table.add_column("Program", style="cyan")
    table.add_column("Subject")
    table.add_column("Tasks", justify="right")
    table.add_column("Source")
    for p in programs:
        table.add_row(p.name, p.subject, str(len(tasks_for_program(store, p.id))),
                      "generated" if p.ai_generated else "manual")
    console.print(table)
    return programs


def cmd_program(store, generator=None, exam: str = "MSÜ"):
    mode = Prompt.ask("Program mode", choices=["manual", "generated"], default="manual")
    if mode == "manual":
        command = parse(NewProgram, {
            "name": Prompt.ask("Program name"),
            "subject": Prompt.ask("Subject"),
            "description": Prompt.ask("Description", default=""),
        })
        program = create_program(store, command.name, command.subject, command.description)
        console.print(f"[green]Created {program.name}[/green]")
        return program
    topics = Prompt.ask("Weak topics (comma separated)", default="")
    command = parse(GenerateProgramCommand, {
        "subject": Prompt.ask("Subject", default="Mathematics"),
        "weak_topics": [t.strip() for t in topics.split(",") if t.strip()],
        "daily_hours": Prompt.ask("Daily hours", default="4"),
        "days_left": Prompt.ask("Days left", default="7"),
    })
    with console.status("Generating program..."):
        program, tasks = generate_program(
            store, generator, command.subject, command.weak_topics,
            command.daily_hours, command.days_left, exam,
        )
    console.print(f"[green]Created {program.name} with {len(tasks)} tasks[/green]")
    return program


def cmd_question(store, generator=None, exam: str = "MSÜ"):
    command = parse(GenerateQuestionCommand, {
        "subject": Prompt.ask("Subject", default="Mathematics"),
        "topic": Prompt.ask("Topic"),
        "difficulty": Prompt.ask("Difficulty", choices=["1", "2", "3"], default="2"),
    })
    with console.status("Generating question..."):
        question = generate_question(store, generator, command.subject, command.topic,
                                     command.difficulty, exam)
    console.print(Panel(question.question, title=f"{question.subject} / {question.topic}"))
    return question


def cmd_users(store, user=None):
    table = Table(title="Users")
    table.add_column("Name", style="cyan")
    table.add_column("Role")
    table.add_column("Points", justify="right")
    table.add_column("Level", justify="right")
    table.add_column("Streak", justify="right")
    for u in list_users(store):
        table.add_row(u["name"], u["role"], str(u["points"]), str(u["level"]), str(u["streak"]))
    console.print(table)


def do_login(store):
    while True:
        username = Prompt.ask("Username")
        password = Prompt.ask("Password", password=True)
        try:
            command = parse(LoginCommand, {"username": username, "password": password})
            return login(store, command.username, command.password)
        except (InvalidCredentials, InvalidInput) as e:
            console.print(f"[red]{e}[/red]")


def run_session(store, user: dict, generator=None, exam: str = "MSÜ"):
    student = user["role"] == "student"
    commands = STUDENT_COMMANDS if student else GUARDIAN_COMMANDS
    if student:
        handlers = {
            "tasks": lambda: cmd_tasks(store),
            "complete": lambda: cmd_complete(store, user, generator, exam),
            "quiz": lambda: cmd_quiz(store, user, generator),
            "rewards": lambda: cmd_rewards(store),
            "claim": lambda: cmd_claim(store, user),
            "claims": lambda: cmd_my_claims(store, user),
            "weak": lambda: cmd_weak(store, user),
            "dashboard": lambda: cmd_dashboard(store, user),
        }
    else:
        handlers = {
            "claims": lambda: cmd_pending(store),
            "decide": lambda: cmd_decide(store),
            "reward": lambda: cmd_add_reward(store),
            "task": lambda: cmd_add_task(store),
            "book": lambda: cmd_add_book(store),
            "books": lambda: cmd_books(store),
            "programs": lambda: cmd_programs(store),
            "program": lambda: cmd_program(store, generator, exam),
            "question": lambda: cmd_question(store, generator, exam),
            "users": lambda: cmd_users(store),
        }

    while True:
        show_menu(commands)
        choice = Prompt.ask("\n[bold]>[/bold]", default=commands[0][0]).strip().lower()
        if choice in ("quit", "exit", "q"):
            console.print("[dim]Good luck on your exam![/dim]")
            break
        handler = handlers.get(choice)
        if handler is None:
            console.print("[red]Unknown command. Try again.[/red]")
            continue
        try:
            handler()
            if student:
                user = {**user, **get_user(store, user["id"]).public()}
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except StudyRPGError as e:
            console.print(f"[red]Error: {e}[/red]")


def main():
    config = Config()
    setup_logging(config.log_level)
    store = SQLiteRecordStore(config.db_path)
    first_run = not is_seeded(store)
    if first_run:
        console.print("[dim]Setting up for first use...[/dim]")
    seed_all(store)
    if first_run:
        console.print("[green]Ready![/green]\n")

    show_welcome()
    user = do_login(store)
    console.print(f"[bold]Hello, {user['name']}![/bold]")
    run_session(store, user, GeminiGenerator(config), config.exam_name)


if __name__ == "__main__":
    main()
