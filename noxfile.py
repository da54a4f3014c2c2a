import os

import nox  # type:ignore[import-not-found]

nox.options.default_venv_backend = "conda"
os.environ.update({"PDM_IGNORE_SAVED_PYTHON": "1"})
MIN_COVERAGE = 80


def _pdm_install(session: nox.Session, *args: str) -> None:
    session.env.pop(
        "VIRTUAL_ENV", None
    )  # nox does not clear this and pdm takes this before CONDA_PREFIX
    session.run_always("pdm", "install", *args, "--check", external=True)


@nox.session(python=["3.11", "3.12"])
def test(session: nox.Session) -> None:
    _pdm_install(session, "-dG", "test", "--no-editable", "-q")
    session.run("pytest", "--cov=shopgraphql", f"--cov-fail-under={MIN_COVERAGE}", "tests/")


@nox.session(python="3.11")
def lint(session: nox.Session) -> None:
    _pdm_install(session, "-dG", "lint", "--no-self")
    session.run("pre-commit", "run", "--all", external=True)
