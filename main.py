"""
sqlexport 主入口：把 SQL dashboard / query 导出为 Terraform 配置。

用法: python main.py [--mode dashboard|query] [--profile NAME] ID [ID ...]
"""

import argparse
import logging
import sys
from typing import List, Optional, Sequence

from sqlexport.client import Fetcher, SqlAnalyticsClient
from sqlexport.config_loader import ExportConfig, ExportMode, load_config
from sqlexport.errors import ExportError
from sqlexport.inventory import Inventory
from sqlexport.output import OutputWriter
from sqlexport.renderer import Renderer

logger = logging.getLogger(__name__)


def parse_mode(mode: str) -> ExportMode:
    try:
        return ExportMode(mode)
    except ValueError:
        raise ExportError(f"Unknown mode: {mode} (pick \"dashboard\" or \"query\")") from None


def build_inventory(fetcher: Fetcher, mode: ExportMode, ids: Sequence[str]) -> Inventory:
    """从根 ID 出发加载所有相关对象。"""
    inventory = Inventory(fetcher)
    for remote_id in ids:
        if mode == ExportMode.DASHBOARD:
            inventory.load_dashboard(remote_id)
        else:
            inventory.load_query(remote_id)

    logger.info(
        f"已加载 {len(inventory.dashboards)} 个 dashboard, {len(inventory.widgets)} 个 widget, "
        f"{len(inventory.queries)} 个 query, {len(inventory.visualizations)} 个 visualization"
    )
    return inventory


def run(config: ExportConfig, mode: str, ids: Sequence[str], fetcher: Optional[Fetcher] = None) -> List[str]:
    """Load, render and write. Returns the paths written."""
    export_mode = parse_mode(mode)

    if fetcher is None:
        with SqlAnalyticsClient(config.host, config.token, timeout=config.timeout) as client:
            inventory = build_inventory(client, export_mode, ids)
    else:
        inventory = build_inventory(fetcher, export_mode, ids)

    renderer = Renderer(inventory, skip_table_defaults=config.skip_table_defaults)
    writer = OutputWriter(config.output_dir)
    return [str(p) for p in writer.write_all(inventory, renderer)]


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="sqlexport", description="Export SQL dashboards and queries as Terraform")
    parser.add_argument("ids", nargs="+", metavar="ID", help="Remote ID of a dashboard or query")
    parser.add_argument("--mode", default=ExportMode.DASHBOARD.value, help='Pick "dashboard" or "query" mode.')
    parser.add_argument("--profile", help="Profile name in ~/.databrickscfg to use.")
    parser.add_argument("--config", help="Path to a YAML config file")
    parser.add_argument("--output-dir", help="Directory to write .tf files to (default: current directory)")
    parser.add_argument("--keep-table-defaults", action="store_true", help="Keep default values in table column options")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    # 日志配置
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        parse_mode(args.mode)
        config = load_config(
            args.config,
            profile=args.profile,
            output_dir=args.output_dir,
            skip_table_defaults=False if args.keep_table_defaults else None,
        )
        written = run(config, args.mode, args.ids)
    except ExportError as e:
        logger.error(str(e))
        return 1

    logger.info(f"完成! 写入 {len(written)} 个文件")
    return 0


if __name__ == "__main__":
    sys.exit(main())
