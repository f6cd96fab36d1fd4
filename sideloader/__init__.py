import os
from pathlib import Path
from flask import Flask

from .aborthandler import CancellationRegistry
from .classify import RunnerClassifiers, SideloadClassifier
from .environment import KnownFixTable
from .launch import Orchestrator
from .routes import LaunchBoard, bp as routes_bp
from .runtime import CompatRuntime
from .settings import SettingsStore, TitleStore

# Bind only localhost unless overridden
BIND = os.environ.get("BIND", "127.0.0.1")
PORT = int(os.environ.get("PORT", "5000"))
SANDBOX_BOX = os.environ.get("SANDBOX_BOX", "DefaultBox")
LOG_LEVEL = os.environ.get("SIDELOADER_LOG_LEVEL", "INFO")

def ensure_root(library_root: str) -> None:
    if not os.path.isdir(library_root):
        raise SystemExit(f"LIBRARY_ROOT does not exist: {library_root}")

def create_app(library_root: str, *, browser_host=None, runtime=None) -> Flask:
    root = Path(library_root)
    app = Flask(__name__)
    app.secret_key = os.environ.get("FLASK_SECRET", "dev-" + os.urandom(8).hex())
    app.config["LIBRARY_ROOT"] = str(root)
    app.config["APP_TITLE"] = "Sideloader"
    app.config["TITLES_FILE"] = str(root / "titles.json")
    app.config["SETTINGS_FILE"] = str(root / "_sideloader.json")
    app.config["SETTINGS_DIR"] = str(root / "settings")
    app.config["KNOWN_FIXES_DIR"] = str(root / "known_fixes")
    app.config["PREFIX_DIR"] = str(root / "prefixes")
    app.config["LOG_DIR"] = str(root / "logs")
    app.config["SANDBOX_BOX"] = SANDBOX_BOX
    app.config["DEFAULT_RUNNER"] = "sideload"

    titles = TitleStore(Path(app.config["TITLES_FILE"]))
    settings = SettingsStore(
        Path(app.config["SETTINGS_FILE"]),
        Path(app.config["SETTINGS_DIR"]),
        prefix_root=Path(app.config["PREFIX_DIR"]),
        defaults={"sandbox_box": app.config["SANDBOX_BOX"]},
    )
    board = LaunchBoard()
    orchestrator = Orchestrator(
        titles=titles,
        settings=settings,
        classifiers=RunnerClassifiers({"sideload": SideloadClassifier(titles)}),
        runtime=runtime or CompatRuntime(settings),
        registry=CancellationRegistry(),
        known_fixes=KnownFixTable(Path(app.config["KNOWN_FIXES_DIR"])),
        browser_host=browser_host,
        log_dir=Path(app.config["LOG_DIR"]),
        on_status=board.record_status,
        on_error=board.record_error,
    )
    app.extensions["sideloader"] = {"orchestrator": orchestrator, "board": board}

    app.register_blueprint(routes_bp)
    return app
