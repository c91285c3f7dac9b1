"""
Validate 命令实现

验证 YAML 构建描述文件的命令。
"""

import json

import typer
from rich.console import Console
from rich.table import Table

from ...config import validate_config
from ...utils import expand_path


console = Console()


def validate_command(
    profile: str = typer.Option(..., "--profile", "-p", help="构建描述文件路径"),
    json_output: bool = typer.Option(False, "--json", help="输出 JSON 格式的错误信息"),
) -> None:
    """验证构建描述文件

    检查描述文件的语法和字段取值。

    示例:
        cpic validate -p profile.yaml
        cpic validate -p profile.yaml --json
    """
    profile_path = expand_path(profile)

    if not profile_path.exists():
        console.print(f"[red]配置文件不存在: {profile_path}[/red]")
        raise typer.Exit(1)

    console.print(f"正在验证配置文件: [cyan]{profile_path}[/cyan]")
    errors = validate_config(profile_path)

    if not errors:
        console.print("[green]✓ 配置文件验证通过[/green]")
        return

    if json_output:
        error_data = {
            "file": str(profile_path),
            "errors": [
                {"loc": [str(item) for item in e.get('loc', [])], "msg": e.get('msg', '')}
                for e in errors
            ],
            "error_count": len(errors),
        }
        console.print_json(json.dumps(error_data, ensure_ascii=False))
    else:
        table = Table(title=f"验证错误 ({len(errors)} 个)")
        table.add_column("字段", style="cyan")
        table.add_column("错误", style="red")
        for e in errors:
            loc = " -> ".join(str(item) for item in e.get('loc', [])) or "根级别"
            table.add_row(loc, e.get('msg', '未知错误'))
        console.print(table)

    raise typer.Exit(1)
