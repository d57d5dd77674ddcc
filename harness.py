"""
Interactive harness for trying mdtasks without MCP integration.

Usage:
    python harness.py <DATA_DIR>

Runs a quick smoke test over every project in DATA_DIR, then drops you into a
REPL where you can call store methods directly.
"""

import json
import sys
from pathlib import Path

# Add src/ to path so imports work
sys.path.insert(0, str(Path(__file__).parent / "src"))

from mdtasks.engine.errors import EngineError
from mdtasks.engine.mutations import flatten_tasks
from mdtasks.models.snapshot import project_to_dict, summarize_project
from mdtasks.store.file_store import FileProjectStore
from mdtasks.utils.dates import due_status


def smoke_test(store: FileProjectStore) -> None:
    """Quick automated checks after loading."""
    projects = store.list_projects()
    print("\n=== Smoke Test ===")
    print(f"  Data dir:   {store.data_dir}")
    print(f"  Projects:   {len(projects)}")

    for project in projects:
        summary = summarize_project(project)
        print(f"\n  {project.id}: {project.title}  "
              f"({summary['open_count']} open / {summary['task_count']} total)")
        for group in project.groups:
            print(f"    ### {group.name}  [{group.id}]  {len(group.all_tasks())} tasks")

        overdue = [t for t in flatten_tasks(project) if t.status != "done" and due_status(t.due_date) == "overdue"]
        if overdue:
            print(f"    Overdue: {len(overdue)}")
            for t in overdue[:5]:
                print(f"      L{t.line_number} {t.content}  due={t.due_date}")

    print("\n=== Smoke Test Complete ===\n")


def repl(store: FileProjectStore) -> None:
    """Simple REPL for interactive exploration."""
    print("Interactive mode. Type 'help' for commands, 'quit' to exit.\n")

    commands = {
        "help":     "Show this help",
        "projects": "List projects",
        "show":     "Show a project's tree. Usage: show <project>",
        "raw":      "Print a project's markdown. Usage: raw <project>",
        "json":     "Print a project as JSON. Usage: json <project>",
        "add":      "Add a root task. Usage: add <project> <content...>",
        "done":     "Mark a task done (rolls recurring tasks). Usage: done <project> <line>",
        "delete":   "Delete a task and its subtasks. Usage: delete <project> <line>",
        "quit":     "Exit",
    }

    while True:
        try:
            line = input("mdtasks> ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            break

        if not line:
            continue

        parts = line.split()
        cmd = parts[0].lower()

        try:
            if cmd == "quit" or cmd == "exit":
                break

            elif cmd == "help":
                for k, v in commands.items():
                    print(f"  {k:10s} {v}")

            elif cmd == "projects":
                for p in store.list_projects():
                    print(f"  {p.id:20s} {p.title}")

            elif cmd == "show" and len(parts) == 2:
                project = store.get_project(parts[1])
                for location in project.iter_locations():
                    t = location.task
                    indent = "  " * location.depth
                    print(f"  L{t.line_number:<4d} {indent}[{t.status:5s}] {t.content}")

            elif cmd == "raw" and len(parts) == 2:
                print(store.get_raw(parts[1]))

            elif cmd == "json" and len(parts) == 2:
                print(json.dumps(project_to_dict(store.get_project(parts[1])), indent=2))

            elif cmd == "add" and len(parts) >= 3:
                task = store.add_task(parts[1], " ".join(parts[2:]))
                print(f"  Added at line {task.line_number}")

            elif cmd == "done" and len(parts) == 3:
                store.update_task(parts[1], int(parts[2]), status="done")
                print("  OK")

            elif cmd == "delete" and len(parts) == 3:
                store.delete_task(parts[1], int(parts[2]))
                print("  OK")

            else:
                print(f"  Unknown command or wrong arguments: {line}  (try 'help')")

        except (EngineError, ValueError) as e:
            print(f"  Error: {e}")


def main() -> None:
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)

    data_dir = Path(sys.argv[1])
    if not data_dir.is_dir():
        print(f"Error: {data_dir} is not a directory")
        sys.exit(1)

    store = FileProjectStore(data_dir)
    smoke_test(store)
    repl(store)


if __name__ == "__main__":
    main()
