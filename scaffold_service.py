"""Project scaffolding: description parsing, file layout and framework setup."""

import logging
import re
import shutil
import subprocess
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import logger_service

FRAMEWORKS = [
    "Express", "Fastify", "Koa", "Next.js", "Vite", "NestJS", "Hapi", "Sapper",
    "AdonisJS", "FeathersJS", "LoopBack", "Flask", "Django", "FastAPI",
]

STRUCTURE_RULES = [
    (re.compile(r"route", re.IGNORECASE), "routes", "example"),
    (re.compile(r"controller", re.IGNORECASE), "controllers", "main"),
    (re.compile(r"dashboard", re.IGNORECASE), "pages", "dashboard"),
    (re.compile(r"login", re.IGNORECASE), "pages", "login"),
]

ENTRY_FILES = {
    "express": ("index.js", """
import express from 'express';
const app = express();
app.get('/', (req, res) => res.send('Hello from Express!'));
app.listen(3000, () => console.log('Express running on http://localhost:3000'));
"""),
    "fastify": ("index.js", """
import Fastify from 'fastify';
const app = Fastify();
app.get('/', async () => ({ message: 'Hello from Fastify!' }));
app.listen({ port: 3000 }, () => console.log('Fastify running on http://localhost:3000'));
"""),
    "koa": ("index.js", """
import Koa from 'koa';
const app = new Koa();
app.use(async ctx => ctx.body = 'Hello from Koa!');
app.listen(3000, () => console.log('Koa running on http://localhost:3000'));
"""),
    "hapi": ("index.js", """
import Hapi from '@hapi/hapi';
const server = Hapi.server({ port: 3000, host: 'localhost' });
server.route({ method: 'GET', path: '/', handler: () => 'Hello from Hapi!' });
await server.start();
console.log('Hapi running on', server.info.uri);
"""),
    "flask": ("app.py", """
from flask import Flask
app = Flask(__name__)
@app.route('/')
def home():
    return "Hello from Flask!"
"""),
    "fastapi": ("main.py", """
from fastapi import FastAPI
app = FastAPI()
@app.get("/")
def read_root():
    return {"message": "Hello from FastAPI!"}
"""),
}

NPM_PACKAGES = {
    "express": ["express"],
    "fastify": ["fastify"],
    "koa": ["koa"],
    "hapi": ["@hapi/hapi"],
}

VENV_PACKAGES = {
    "flask": ["flask"],
    "fastapi": ["fastapi", "uvicorn"],
}

GENERATOR_COMMANDS = {
    "nestjs": [("npx", ["@nestjs/cli", "new", "nestjs-app", "--skip-install"])],
    "next.js": [("npx", ["create-next-app@latest", "next-app", "--yes"])],
    "vite": [("npm", ["create", "vite@latest", "vite-app", "--yes"])],
    "django": [
        ("python3", ["-m", "pip", "install", "django"]),
        ("django-admin", ["startproject", "django_app", "."]),
    ],
}

ROUTE_STUB = "export default function {name}Routes(app) {{}}"
CONTROLLER_STUB = "export function {name}Controller() {{}}"


def parse_description(desc: str) -> Dict[str, List[str]]:
    structure = {"routes": [], "controllers": [], "pages": []}
    for pattern, bucket, name in STRUCTURE_RULES:
        if pattern.search(desc):
            structure[bucket].append(name)
    return structure


def safe_exec(command: str, args: Sequence[str], cwd: Optional[Path] = None, quiet: bool = False) -> bool:
    """Run a command; log and return False on failure instead of raising."""
    try:
        subprocess.run(
            [command, *args],
            cwd=cwd,
            check=True,
            stdout=subprocess.DEVNULL if quiet else None,
            stderr=subprocess.DEVNULL if quiet else None,
        )
        return True
    except (OSError, subprocess.CalledProcessError) as e:
        if not quiet:
            logger_service.log_event("command_failed", level=logging.WARNING, message=f"Command failed: {command} {' '.join(args)} | {e}", command=command)
        return False


def verify_environment() -> bool:
    """Node.js is required; Python only gates the Python frameworks."""
    if not safe_exec("node", ["-v"], quiet=True):
        logger_service.log_event("node_missing", level=logging.ERROR, message="Node.js not found.")
        return False
    if not safe_exec("python3", ["--version"], quiet=True):
        logger_service.log_event("python_missing", level=logging.WARNING, message="Python not found. Python frameworks will be skipped.")
    return True


def prepare_project_dir(project_dir: Path) -> Path:
    project_dir = Path(project_dir)
    project_dir.mkdir(parents=True, exist_ok=True)
    for child in project_dir.iterdir():
        if child.is_dir() and not child.is_symlink():
            shutil.rmtree(child)
        else:
            child.unlink()
    return project_dir


def write_structure(project_dir: Path, structure: Dict[str, List[str]], snippet: str) -> List[Path]:
    """Write route and controller modules; the snippet replaces the stubs when present."""
    written = []
    for bucket, stub in (("routes", ROUTE_STUB), ("controllers", CONTROLLER_STUB)):
        names = structure.get(bucket, [])
        if not names:
            continue
        target = Path(project_dir) / bucket
        target.mkdir(parents=True, exist_ok=True)
        for name in names:
            path = target / f"{name}.js"
            path.write_text(snippet or stub.format(name=name), encoding="utf-8")
            written.append(path)
    return written


def setup_framework(framework: str, project_dir: Path, install: bool = True) -> bool:
    fw = framework.lower()
    project_dir = Path(project_dir)
    logger_service.log_event("framework_setup", message=f"Setting up framework: {framework}", framework=framework)

    if fw in ENTRY_FILES:
        filename, body = ENTRY_FILES[fw]
        (project_dir / filename).write_text(body, encoding="utf-8")
        if not install:
            return True
        if fw in NPM_PACKAGES:
            return safe_exec("npm", ["install", *NPM_PACKAGES[fw]], cwd=project_dir)
        if not safe_exec("python3", ["-m", "venv", "venv"], cwd=project_dir):
            return False
        pip = str(project_dir / "venv" / "bin" / "pip")
        return safe_exec(pip, ["install", *VENV_PACKAGES[fw]], cwd=project_dir)

    if fw in GENERATOR_COMMANDS:
        if not install:
            return True
        return all([safe_exec(cmd, args, cwd=project_dir) for cmd, args in GENERATOR_COMMANDS[fw]])

    logger_service.log_event("framework_unsupported", level=logging.WARNING, message=f'Framework "{framework}" setup not implemented.', framework=framework)
    return False
