import json
import os
from typing import Any, List

from click import Command
from click.testing import CliRunner
from click.testing import Result


def write_document(path: os.PathLike, document: dict[str, Any]) -> str:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(document, f)
    return str(path)


def run_and_check_status_code(command: Command, args: List[str], status_code: int = 0) -> Result:
    runner = CliRunner()
    result = runner.invoke(command, args)

    if result.exit_code != status_code:
        print("Output: ")
        print(result.output)
        print("Exception: ")
        print(result.exception)
        import traceback

        traceback.print_exception(*result.exc_info)
        raise Exception(f"Status code {result.exit_code} not {status_code}")
    return result
