#!/usr/bin/env python3
"""
Dorm CLI

Terminal front end for the dorm service:
  dorm login                      Log in (token kept in ~/.dorm/token)
  dorm logout                     Forget the token
  dorm buildings                  Bed list (building / room / bed)
  dorm add-building NAME          ...and add-room, add-bed
  dorm students                   Students and where they sleep
  dorm checkin STUDENT BED        Check a student into a bed
  dorm checkout STUDENT           Free the student's bed
  dorm tickets                    Maintenance tickets
"""

import argparse
import os
import sys
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.prompt import Prompt
from rich.table import Table

from .api import ApiError, DormClient, TICKET_STATUSES

console = Console()

DEFAULT_SERVER = os.environ.get("DORM_API_URL", "http://localhost:3000")


def flatten_beds(buildings: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """building -> rooms -> beds tree as one row per bed."""
    rows = []
    for b in buildings:
        for r in b.get("rooms") or []:
            for bed in r.get("beds") or []:
                rows.append({
                    "id": bed["id"],
                    "building": b["name"],
                    "room": f"{r['floor']}-{r['number']}",
                    "bed": bed["label"],
                })
    return rows


def bed_location(student: Dict[str, Any]) -> Optional[str]:
    bed = student.get("bed")
    if not bed:
        return None
    room = bed.get("room") or {}
    building = room.get("building") or {}
    return f"{building.get('name', '')} {room.get('floor', '')}-{room.get('number', '')} bed {bed['label']}"


def render_beds(buildings: List[Dict[str, Any]]) -> None:
    table = Table(title="Beds")
    table.add_column("Bed ID", justify="right")
    table.add_column("Building")
    table.add_column("Room")
    table.add_column("Bed")
    for row in flatten_beds(buildings):
        table.add_row(str(row["id"]), row["building"], row["room"], row["bed"])
    console.print(table)


def render_students(students: List[Dict[str, Any]]) -> None:
    table = Table(title="Students")
    table.add_column("ID", justify="right")
    table.add_column("Name")
    table.add_column("Student No")
    table.add_column("Bed")
    for s in students:
        where = bed_location(s)
        table.add_row(
            str(s["id"]),
            (s.get("user") or {}).get("name", ""),
            s["studentNo"],
            where or "[dim]not checked in[/dim]",
        )
    console.print(table)


def render_tickets(tickets: List[Dict[str, Any]]) -> None:
    table = Table(title="Tickets")
    table.add_column("ID", justify="right")
    table.add_column("Title")
    table.add_column("Status")
    table.add_column("Created")
    for t in tickets:
        table.add_row(str(t["id"]), t["title"], t["status"], t["createdAt"])
    console.print(table)


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dorm",
        description="Dormitory management client",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--server",
        default=DEFAULT_SERVER,
        help=f"API base URL (default: {DEFAULT_SERVER})",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    login_parser = sub.add_parser("login", help="Log in and store the token")
    login_parser.add_argument("--email", "-e")
    login_parser.add_argument("--password", "-p")
    sub.add_parser("logout", help="Forget the stored token")
    sub.add_parser("whoami", help="Show the logged-in user")
    sub.add_parser("health", help="Ping the API")

    user_parser = sub.add_parser("add-user", help="Create a user (admin)")
    user_parser.add_argument("email")
    user_parser.add_argument("name")
    user_parser.add_argument("role", choices=["admin", "dorm_manager", "student"])
    user_parser.add_argument("--password", "-p")

    sub.add_parser("buildings", help="List beds by building and room")
    p = sub.add_parser("add-building", help="Create a building")
    p.add_argument("name")
    p = sub.add_parser("add-room", help="Create a room")
    p.add_argument("building_id", type=int)
    p.add_argument("floor", type=int)
    p.add_argument("number")
    p = sub.add_parser("add-bed", help="Create a bed")
    p.add_argument("room_id", type=int)
    p.add_argument("label")

    sub.add_parser("students", help="List students")
    p = sub.add_parser("add-student", help="Create a student record for a user")
    p.add_argument("user_id", type=int)
    p.add_argument("student_no")
    p = sub.add_parser("checkin", help="Check a student into a bed")
    p.add_argument("student_id", type=int)
    p.add_argument("bed_id", type=int)
    p = sub.add_parser("checkout", help="Check a student out")
    p.add_argument("student_id", type=int)

    sub.add_parser("tickets", help="List tickets")
    p = sub.add_parser("add-ticket", help="Open a maintenance ticket")
    p.add_argument("title")
    p.add_argument("description")
    p = sub.add_parser("set-ticket", help="Change a ticket's status")
    p.add_argument("ticket_id", type=int)
    p.add_argument("status", choices=TICKET_STATUSES)

    return parser


def run_command(client: DormClient, args: argparse.Namespace) -> int:
    cmd = args.command

    if cmd == "login":
        email = args.email or Prompt.ask("Email", default="admin@local")
        password = args.password or Prompt.ask("Password", password=True)
        user = client.login(email, password)
        console.print(f"[green]✓ Logged in[/green] as [bold]{user['name']}[/bold] ({user['role']})")
        return 0

    if cmd == "logout":
        client.logout()
        console.print("Logged out")
        return 0

    if cmd == "health":
        client.health()
        console.print("[green]ok[/green]")
        return 0

    if not client.logged_in:
        console.print("[red]✗ Not logged in[/red]  run: [cyan]dorm login[/cyan]")
        return 1

    # проверяем токен заранее; просроченный удаляем
    try:
        me = client.me()
    except ApiError as e:
        if e.status_code == 401:
            client.logout()
            console.print("[red]✗ Session expired[/red]  run: [cyan]dorm login[/cyan]")
            return 1
        raise

    if cmd == "whoami":
        console.print(f"{me['name']} <{me['email']}> ({me['role']})")
    elif cmd == "add-user":
        password = args.password or Prompt.ask("Password (min 8)", password=True)
        user = client.create_user(args.email, args.name, args.role, password)
        console.print(f"[green]✓ Created user[/green] #{user['id']} {user['email']}")
    elif cmd == "buildings":
        render_beds(client.buildings())
    elif cmd == "add-building":
        client.create_building(args.name)
        console.print("[green]✓ Building created[/green]")
        render_beds(client.buildings())
    elif cmd == "add-room":
        client.create_room(args.building_id, args.floor, args.number)
        console.print("[green]✓ Room created[/green]")
        render_beds(client.buildings())
    elif cmd == "add-bed":
        client.create_bed(args.room_id, args.label)
        console.print("[green]✓ Bed created[/green]")
        render_beds(client.buildings())
    elif cmd == "students":
        render_students(client.students())
    elif cmd == "add-student":
        client.create_student(args.user_id, args.student_no)
        console.print("[green]✓ Student created[/green]")
        render_students(client.students())
    elif cmd == "checkin":
        client.checkin(args.student_id, args.bed_id)
        console.print("[green]✓ Checked in[/green]")
        render_students(client.students())
    elif cmd == "checkout":
        client.checkout(args.student_id)
        console.print("[green]✓ Checked out[/green]")
        render_students(client.students())
    elif cmd == "tickets":
        render_tickets(client.tickets())
    elif cmd == "add-ticket":
        client.create_ticket(args.title, args.description)
        console.print("[green]✓ Ticket created[/green]")
        render_tickets(client.tickets())
    elif cmd == "set-ticket":
        client.update_ticket(args.ticket_id, args.status)
        console.print("[green]✓ Ticket updated[/green]")
        render_tickets(client.tickets())
    return 0


def main(argv: Optional[List[str]] = None, client: Optional[DormClient] = None) -> int:
    args = create_parser().parse_args(argv)
    client = client or DormClient(args.server)
    try:
        return run_command(client, args)
    except ApiError as e:
        console.print(f"[red]✗ {e.code}[/red]")
        return 1


if __name__ == "__main__":
    sys.exit(main())
