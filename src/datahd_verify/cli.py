import json
from pathlib import Path
import click
from .logic import verify_extraction

@click.group()
def main():
    pass

@main.command("extracted")
@click.argument("path", type=click.Path(exists=True, file_okay=False, path_type=Path))
def extracted_cmd(path: Path):
    result = verify_extraction(path)
    click.echo(json.dumps(result, sort_keys=True, separators=(",", ":"), ensure_ascii=False))
    if result["status"] != "PASS":
        raise SystemExit(1)

if __name__ == "__main__":
    main()
