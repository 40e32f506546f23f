"""
mailposture command-line interface

  mailposture scan example.com --verbose
  mailposture scan example.com --selector google --json-output
  mailposture serve --port 3000
"""

import json
import sys

import click
from colorama import Fore, Style

from mailposture.analyzers import EmailSecurityAnalyzer
from mailposture.api import ENDPOINTS, create_app, normalize_domain
from mailposture.config import load_config
from mailposture.console import console
from mailposture.models import EXCELLENT, GOOD, CompositeResult
from mailposture.resolver import DNSLookup
from mailposture.verifier import AuthVerifier

LEVEL_COLORS = {
    'Excellent': Fore.GREEN,
    'Good': Fore.GREEN,
    'Fair': Fore.YELLOW,
    'Poor': Fore.RED,
}


def print_banner():
    """Print tool banner"""
    print(f"""
{Fore.CYAN}================================================================================
                    EMAIL AUTHENTICATION POSTURE SCANNER
                  DMARC / SPF / DKIM / MX Security Assessment
================================================================================{Style.RESET_ALL}
""")


def print_console_report(result: CompositeResult):
    """Print a colorized report for a composite analysis"""
    overall = result.overall_score
    color = LEVEL_COLORS.get(overall.level, Fore.WHITE)

    print(f"{Style.BRIGHT}Domain:{Style.RESET_ALL} {result.domain}")
    print(f"{Style.BRIGHT}Overall Score:{Style.RESET_ALL} {color}{overall.value}/10 ({overall.level}){Style.RESET_ALL}")

    for name, analysis in result.protocols().items():
        print(f"\n{Style.BRIGHT}{name.upper()} STATUS:{Style.RESET_ALL}")
        if not analysis.success:
            print(f"  Status: {Fore.RED}✗ {analysis.error}{Style.RESET_ALL}")
            for rec in analysis.recommendations:
                print(f"    • {Fore.GREEN}{rec}{Style.RESET_ALL}")
            continue

        score = analysis.score
        score_color = LEVEL_COLORS.get(score.level, Fore.WHITE)
        print(f"  Score: {score_color}{score.value}/{score.out_of} ({score.level}){Style.RESET_ALL}")
        if analysis.raw_record:
            print(f"  Record: {analysis.raw_record}")
        if analysis.records:
            for mx in analysis.records:
                print(f"  • {mx['exchange']} (priority {mx['priority']})")
        for detail in score.details:
            print(f"    + {detail}")
        for warning in analysis.warnings:
            print(f"    • {Fore.YELLOW}{warning}{Style.RESET_ALL}")
        for rec in analysis.recommendations:
            print(f"    • {Fore.GREEN}{rec}{Style.RESET_ALL}")


@click.group()
def main():
    """Email authentication posture scanner"""


@main.command()
@click.argument('domain')
@click.option('--selector', '-s', help='DKIM selector to check (default from config)')
@click.option('--config', '-c', 'config_file', default=None, help='Configuration file path')
@click.option('--dns-servers', help='Comma-separated list of DNS servers')
@click.option('--timeout', type=int, help='DNS timeout in seconds')
@click.option('--no-verify', is_flag=True, help='Skip the advisory SPF/DKIM/DMARC verifier')
@click.option('--json-output', '-j', is_flag=True, help='Output results in JSON format')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose output')
def scan(domain, selector, config_file, dns_servers, timeout, no_verify, json_output, verbose):
    """Scan DOMAIN and score its DMARC, SPF, DKIM and MX records"""
    console.verbose = verbose
    cfg = load_config(config_file)

    # Override config with command line arguments
    if dns_servers:
        cfg['dns']['servers'] = dns_servers.split(',')
    if timeout:
        cfg['dns']['timeout'] = timeout
    if no_verify:
        cfg['verifier']['enabled'] = False

    domain = normalize_domain(domain)
    if not domain or '.' not in domain:
        click.echo(f"{Fore.RED}Error: Invalid domain format{Style.RESET_ALL}", err=True)
        sys.exit(1)

    lookup = DNSLookup.from_config(cfg)
    verifier = AuthVerifier.from_config(cfg) if cfg['verifier'].get('enabled') else None
    analyzer = EmailSecurityAnalyzer.from_config(cfg, lookup, verifier)

    if not json_output:
        print_banner()

    try:
        result = analyzer.analyze(domain, dkim_selector=selector or cfg['dkim']['default_selector'])
    except KeyboardInterrupt:
        click.echo(f"\n{Fore.YELLOW}Scan interrupted by user{Style.RESET_ALL}", err=True)
        sys.exit(130)

    if json_output:
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        print_console_report(result)

    sys.exit(0 if result.overall_score.level in (EXCELLENT, GOOD) else 1)


@main.command()
@click.option('--config', '-c', 'config_file', default=None, help='Configuration file path')
@click.option('--host', help='Interface to bind (default from config)')
@click.option('--port', '-p', type=int, help='Port to listen on (default from config)')
@click.option('--debug', is_flag=True, help='Run Flask in debug mode')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose output')
def serve(config_file, host, port, debug, verbose):
    """Run the HTTP API"""
    console.verbose = verbose
    cfg = load_config(config_file)
    app = create_app(cfg)

    print("Email Authentication Analyzer API")
    print("Available endpoints:")
    for endpoint in ENDPOINTS:
        print(f"  {endpoint}")

    app.run(host=host or cfg['api']['host'], port=port or cfg['api']['port'], debug=debug)


if __name__ == '__main__':
    main()
