#!/usr/bin/env python3
"""
AWS Cost Report Generator - Main CLI Entry Point

Post a month-to-date AWS cost breakdown, with a pie chart, to a Discord channel.
"""

import logging
import os
import sys
from datetime import datetime
from pathlib import Path

import click
from colorama import Fore, Style
from colorama import init as colorama_init
from dotenv import load_dotenv
from tqdm import tqdm

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'src'))

from config import ReportConfig
from cost_explorer_reader import CostExplorerReader
from discord_notifier import DiscordNotifier
from errors import ConfigError
from models import DateRange
from report_formatter import format_message
from report_pipeline import ReportPipeline, get_time_period
from visualizer import CostVisualizer

# Initialize colorama
colorama_init()


def setup_logging(debug: bool = False):
    """Configure logging based on debug flag."""
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )

logger = logging.getLogger(__name__)


def print_banner():
    """Print application banner."""
    banner = f"""
{Fore.CYAN}╔══════════════════════════════════════════════════════════════╗
║                                                              ║
║                  AWS Cost Report Generator                   ║
║                                                              ║
║       Month-to-date spend by service, posted to Discord      ║
║                                                              ║
╚══════════════════════════════════════════════════════════════╝{Style.RESET_ALL}
    """
    print(banner)


def load_config(require_delivery: bool = True) -> ReportConfig:
    """Load configuration from the environment, exiting with a message if incomplete."""
    try:
        return ReportConfig.from_env(require_delivery=require_delivery)
    except ConfigError as e:
        print(f"{Fore.RED}Error: Missing required environment variables:{Style.RESET_ALL}")
        for var in e.missing:
            print(f"  - {var}")
        print(f"\n{Fore.YELLOW}Please set these in your .env file or environment.{Style.RESET_ALL}")
        sys.exit(1)


def resolve_period(start_date, end_date) -> DateRange:
    """Build the reporting period, overriding the derived one with explicit dates."""
    default = get_time_period()
    end = datetime.strptime(end_date, '%Y-%m-%d').date() if end_date else default.end
    if start_date:
        start = datetime.strptime(start_date, '%Y-%m-%d').date()
    else:
        # Month-to-date of whichever month the end date falls in
        start = end.replace(day=1)
    return DateRange(start=start, end=end)


@click.command()
@click.option('--start-date', '-s', type=str, help='Start date (YYYY-MM-DD). Default: first day of the end date month')
@click.option('--end-date', '-e', type=str, help='End date (YYYY-MM-DD). Default: today (UTC+9)')
@click.option('--threshold', '-t', type=float, default=1.0, show_default=True,
              help='Services below this share (percent) are grouped into "Others" in the chart')
@click.option('--hide-empty-others', is_flag=True, help='Omit the "Others" slice when it is empty')
@click.option('--output-dir', '-o', type=str, help='Also save the chart (and optional HTML/CSV) here')
@click.option('--generate-html/--no-html', default=False, help='Write an HTML report to --output-dir. Default: False')
@click.option('--generate-csv/--no-csv', default=False, help='Write a CSV of ranked services to --output-dir. Default: False')
@click.option('--dry-run', is_flag=True, help='Build the report and print it without posting to Discord')
@click.option('--skip-empty', is_flag=True, help='Do not post a report when there is no spend')
@click.option('--debug', is_flag=True, help='Enable debug logging')
def generate_report(start_date, end_date, threshold, hide_empty_others, output_dir,
                    generate_html, generate_csv, dry_run, skip_empty, debug):
    """
    Generate the AWS cost report and post it to Discord.

    Fetches month-to-date costs by service from AWS Cost Explorer, ranks
    services by spend, draws a pie chart and posts both to a Discord channel.

    Configuration is done via environment variables (AWS_ACCOUNT, BOT_TOKEN,
    CHANNEL_ID, optionally AWS_PROFILE and AWS_REGION) or a .env file.
    """
    # Setup
    setup_logging(debug)
    print_banner()

    # Load environment variables
    load_dotenv()
    config = load_config(require_delivery=not dry_run)

    if threshold < 0:
        print(f"{Fore.RED}Error: --threshold must be non-negative, got {threshold}{Style.RESET_ALL}")
        sys.exit(1)

    if (generate_html or generate_csv) and not output_dir:
        print(f"{Fore.RED}Error: --generate-html/--generate-csv require --output-dir{Style.RESET_ALL}")
        sys.exit(1)

    try:
        period = resolve_period(start_date, end_date)
    except ValueError as e:
        if 'cannot be after' in str(e):
            print(f"{Fore.RED}Error: {e}{Style.RESET_ALL}")
        else:
            print(f"{Fore.RED}Error: Invalid date format. Use YYYY-MM-DD{Style.RESET_ALL}")
        sys.exit(1)

    print(f"{Fore.CYAN}Configuration:{Style.RESET_ALL}")
    print(f"  AWS Account: {config.account_id}")
    print(f"  AWS Region: {config.aws_region}")
    print(f"  Time Period: {period}")
    print(f"  Others Threshold: {threshold}%")
    if dry_run:
        print(f"  {Fore.YELLOW}Dry Run: report will not be posted{Style.RESET_ALL}")
    else:
        print(f"  Discord Channel: {config.channel_id}")
    if output_dir:
        print(f"  Output Directory: {output_dir}")
    print()

    try:
        notifier = None
        if not dry_run:
            notifier = DiscordNotifier(bot_token=config.bot_token, channel_id=config.channel_id)

        visualizer = CostVisualizer()
        pipeline = ReportPipeline(
            config,
            fetcher=CostExplorerReader(aws_profile=config.aws_profile, aws_region=config.aws_region),
            renderer=visualizer,
            notifier=notifier,
            threshold=threshold,
            include_empty_others=not hide_empty_others,
        )

        # Step 1: Fetch and aggregate
        print(f"{Fore.GREEN}[1/3] Fetching costs from Cost Explorer...{Style.RESET_ALL}")
        report = pipeline.build_report(period)
        print(f"{Fore.GREEN}✓ Ranked {len(report.records)} services{Style.RESET_ALL}\n")

        # Step 2: Render chart and optional files
        print(f"{Fore.GREEN}[2/3] Rendering chart...{Style.RESET_ALL}")
        chart = pipeline.render_chart(report)

        output_files = []
        if output_dir:
            Path(output_dir).mkdir(parents=True, exist_ok=True)
            timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
            steps = 1 + int(generate_html) + int(generate_csv)

            with tqdm(total=steps, desc="Writing files", bar_format='{l_bar}{bar}| {n_fmt}/{total_fmt}') as pbar:
                png_path = os.path.join(output_dir, f'cost_report_{timestamp}.png')
                with open(png_path, 'wb') as f:
                    f.write(chart)
                output_files.append(png_path)
                pbar.update(1)

                if generate_html:
                    html_path = os.path.join(output_dir, f'cost_report_{timestamp}.html')
                    visualizer.generate_html_report(html_path, report)
                    output_files.append(html_path)
                    pbar.update(1)

                if generate_csv:
                    csv_path = os.path.join(output_dir, f'cost_by_service_{timestamp}.csv')
                    report.records.to_pandas().to_csv(csv_path, index=False)
                    output_files.append(csv_path)
                    pbar.update(1)

        print(f"{Fore.GREEN}✓ Chart rendered{Style.RESET_ALL}\n")

        # Step 3: Deliver
        print(f"{Fore.GREEN}[3/3] Delivering report...{Style.RESET_ALL}")
        if dry_run:
            print(format_message(report.content, pipeline.title))
            print(f"{Fore.YELLOW}Dry run: report not posted{Style.RESET_ALL}")
        elif skip_empty and report.is_empty:
            print(f"{Fore.YELLOW}No spend for {period}; report not posted{Style.RESET_ALL}")
        else:
            pipeline.deliver(report, chart)
            print(f"{Fore.GREEN}✓ Report posted to Discord{Style.RESET_ALL}")

        # Print summary
        print(f"\n{Fore.CYAN}{'='*60}{Style.RESET_ALL}")
        print(f"{Fore.CYAN}Report Summary:{Style.RESET_ALL}")
        print(f"{Fore.CYAN}{'='*60}{Style.RESET_ALL}")
        print(f"Total Cost: {Fore.YELLOW}${report.total:,.2f}{Style.RESET_ALL}")
        print(f"Number of Services: {len(report.records)}")
        print(f"Time Period: {period}")

        if output_files:
            print(f"\n{Fore.CYAN}Generated files:{Style.RESET_ALL}")
            for file in output_files:
                print(f"  - {file}")

        print(f"\n{Fore.GREEN}✓ Report generation complete!{Style.RESET_ALL}")

    except Exception as e:
        logger.exception("Error generating report")
        print(f"\n{Fore.RED}Error: {str(e)}{Style.RESET_ALL}")
        if debug:
            raise
        sys.exit(1)


if __name__ == '__main__':
    generate_report()
