import sys
from pathlib import Path

from fastapi.routing import APIRoute, APIWebSocketRoute


def collect_routes(app):
    """Flatten the application's HTTP and WebSocket routes into table rows."""
    rows = []
    for route in app.routes:
        if isinstance(route, APIRoute):
            methods = sorted(m for m in route.methods if m != "HEAD")
            tags = ", ".join(str(t) for t in route.tags) or "-"
            rows.append((route.path, ", ".join(methods), tags, route.endpoint.__name__))
        elif isinstance(route, APIWebSocketRoute):
            rows.append((route.path, "WS", "calls", route.endpoint.__name__))
    return sorted(rows)


def run():
    """Display all URL patterns in the FastAPI application"""

    # Add the project root to Python path so we can import the app
    project_root = Path(__file__).parent.parent.parent
    sys.path.insert(0, str(project_root))

    try:
        from auralis.main import app
    except ImportError as e:
        print(f"Error importing FastAPI app: {e}")
        print("Make sure you're running this from the project root directory.")
        return

    rows = collect_routes(app)
    if not rows:
        print("No routes found.")
        return

    headers = ("Path", "Methods", "Tags", "Endpoint")
    widths = [max(len(headers[i]), *(len(row[i]) for row in rows)) for i in range(3)]

    print("Auralis URL Patterns:")
    print("=" * 50)
    header = " | ".join(h.ljust(w) for h, w in zip(headers, widths)) + f" | {headers[3]}"
    print(header)
    print("-" * len(header))
    for row in rows:
        print(" | ".join(col.ljust(w) for col, w in zip(row, widths)) + f" | {row[3]}")

    print(f"\nTotal routes: {len(rows)}")

if __name__ == "__main__":
    run()
