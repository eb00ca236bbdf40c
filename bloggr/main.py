"""bloggr command line client."""
import argparse
import sys
from typing import List, Optional

from rich.console import Console
from rich.table import Table
from rich.text import Text

from .app import BlogApp
from .config import ALL, CATEGORIES, get_logger
from .errors import BlogError
from .guard import RENDER
from .ui import RecordingNotifier

logger = get_logger("main")

SEVERITY_STYLES = {"success": "green", "error": "bold red", "warning": "yellow"}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="bloggr", description="Read and write posts on a bloggr backend")
    sub = parser.add_subparsers(dest="command", required=True)

    login = sub.add_parser("login", help="log in and remember the session")
    login.add_argument("email")
    login.add_argument("password")

    sub.add_parser("logout", help="forget the stored session")
    sub.add_parser("whoami", help="show the logged-in user")
    sub.add_parser("theme", help="toggle dark mode")

    posts = sub.add_parser("posts", help="list posts")
    posts.add_argument("--search", default="")
    posts.add_argument("--category", default=ALL, choices=(ALL,) + CATEGORIES)
    posts.add_argument("--author", default=ALL, help="user id or username")
    posts.add_argument("--page", type=int, default=1)

    show = sub.add_parser("show", help="show one post with its comments")
    show.add_argument("id")

    like = sub.add_parser("like", help="like or unlike a post")
    like.add_argument("id")

    comment = sub.add_parser("comment", help="comment on a post")
    comment.add_argument("id")
    comment.add_argument("text")
    return parser


def _print_notices(console: Console, notifier: RecordingNotifier) -> None:
    for notice in notifier.notices:
        console.print(Text(notice.message, style=SEVERITY_STYLES.get(notice.severity, "")))
    notifier.clear()


def _posts_table(vm) -> Table:
    table = Table(title=f"posts | page {vm.page}/{vm.page_count}")
    table.add_column("id")
    table.add_column("title")
    table.add_column("category")
    table.add_column("author")
    table.add_column("likes", justify="right")
    table.add_column("comments", justify="right")
    for post in vm.visible():
        table.add_row(
            str(post.id), post.title, post.category, vm.author_name(post.user_id),
            str(post.likes), str(len(post.comments)),
        )
    return table


def _show_post(console: Console, vm) -> None:
    post = vm.item
    console.print(Text(post.title, style="bold"))
    console.print(f"By {vm.author_name(post.user_id)} | {post.category} | {post.likes} likes"
                  + (" (liked)" if vm.liked else ""))
    console.print(post.description)
    for c in post.comments:
        console.print(Text(f"  {vm.comment_author(c)}: {c.text}", style="dim"))


def run(argv: Optional[List[str]] = None, app: Optional[BlogApp] = None, console: Optional[Console] = None) -> int:
    args = build_parser().parse_args(argv)
    console = console or Console()
    notifier = RecordingNotifier()
    app = app or BlogApp(notifier=notifier)
    if isinstance(app.notifier, RecordingNotifier):
        notifier = app.notifier
    app.start()

    status = 0
    try:
        if args.command == "login":
            vm = app.open("/login").view
            vm.login(args.email, args.password)
        elif args.command == "logout":
            app.open("/login").view.logout()
        elif args.command == "whoami":
            user = app.session.current_user
            console.print(f"{user.username} <{user.email}> ({user.role})" if user else "not logged in")
        elif args.command == "theme":
            dark = app.session.toggle_theme()
            console.print(f"dark mode {'on' if dark else 'off'}")
        elif args.command == "posts":
            vm = app.open("/").view
            if vm.error is not None:
                status = 1
            else:
                vm.set_search(args.search)
                vm.set_category(args.category)
                vm.set_author(args.author)
                vm.go_to_page(args.page)
                console.print(_posts_table(vm))
        elif args.command in ("show", "like", "comment"):
            result = app.open(f"/post/{args.id}")
            vm = result.view
            if result.action != RENDER or vm.item is None:
                status = 1
            elif args.command == "show":
                _show_post(console, vm)
            elif args.command == "like":
                liked = vm.toggle_like()
                console.print(f"{'liked' if liked else 'unliked'} ({vm.item.likes} likes)")
            else:
                vm.add_comment(args.text)
    except BlogError as e:
        logger.debug("command %s failed: %s", args.command, e)
        status = 1
    finally:
        app.stop()

    _print_notices(console, notifier)
    return status


def main():
    sys.exit(run())


if __name__ == "__main__":
    main()
