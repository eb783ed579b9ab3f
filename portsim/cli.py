#!filepath: portsim/cli.py
from typing import Optional

import typer
from rich import print

from portsim import Logging, __version__, logs
from portsim.config.app_config import AppConfig
from portsim.utils.errors import PortsimError

app = typer.Typer(help="portsim: multi-currency portfolio backtesting CLI")


@app.command()
def version():
    print(f"v{__version__}")


@app.command()
def run(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="YAML config (default: portsim/config/base.yml)"),
    start: Optional[str] = typer.Option(None, help="override start date (YYYY-MM-DD)"),
    end: Optional[str] = typer.Option(None, help="override end date (YYYY-MM-DD)"),
    run_id: Optional[str] = typer.Option(None, help="output sub-directory name"),
):
    """
    运行一次完整回测：load -> build -> replay -> metrics -> report
    """
    from portsim.workflows.run_backtest import run_backtest

    try:
        cfg = AppConfig.load(config)
        Logging.from_config(cfg.log)

        print(f"[green]Running backtest {cfg.backtest.name}[/green]")
        ctx = run_backtest(cfg, start=start, end=end, run_id=run_id)
    except PortsimError as e:
        # 用户输入 / 数据问题：一行错误，不打印 traceback
        logs.error(f"[CLI] {type(e).__name__}: {e}")
        raise typer.Exit(code=1)

    print(f"[blue]Output:[/blue] {ctx.output_dir}")
    for k, v in (ctx.metrics or {}).items():
        print(f"  {k:<24} {v}")


@app.command()
def validate(config: Optional[str] = typer.Option(None, "--config", "-c")):
    """
    只校验配置（YAML + 工厂注册表），不回放
    """
    from portsim.backtest.factory import PortfolioFactory

    try:
        cfg = AppConfig.load(config)
        portfolio, benchmark = PortfolioFactory.build(cfg.backtest)
    except PortsimError as e:
        logs.error(f"[CLI] {type(e).__name__}: {e}")
        raise typer.Exit(code=1)

    print(f"[green]OK[/green] strategies={[s.name for s in portfolio.strategies]} "
          f"benchmark={benchmark.name if benchmark else None}")


if __name__ == "__main__":
    app()

# python -m portsim.cli run --config portsim/config/base.yml
