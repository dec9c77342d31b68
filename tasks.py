from invoke import task


@task
def env(c):
    """
    Create/update the project virtual environment and install dependencies.
    """
    c.run("uv pip install -e '.[dev]'")


@task
def test(c):
    """
    Run the unit test suite.
    """
    c.run("pytest tests -q", pty=True)


@task(help={"dataset": "OpenFEMA dataset name", "top": "number of records"})
def sample(c, dataset="FimaNfipClaims", top=10):
    """
    Fetch a few records from a dataset and print them.
    """
    c.run(f"python -m openfema_client fetch {dataset} --top {top}", pty=True)
