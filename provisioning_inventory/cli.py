"""CLI interface for provisioning-inventory using Click."""

import sys
from typing import Optional

import click

from . import __version__, console
from .config import AUTH_SCHEMES, ConfigError, load_settings
from .report import FORMATS
from .resolvers import DEFAULT_BACKOFF_SECONDS, DEFAULT_PACE_SECONDS
from .runner import run_inventory


@click.command()
@click.option("--domain", envvar="OKTA_DOMAIN", help="Okta org domain, e.g. example.okta.com [env: OKTA_DOMAIN]")
@click.option("--token", envvar="OKTA_API_TOKEN", help="Okta API token [env: OKTA_API_TOKEN]")
@click.option("--config", "config_path", type=click.Path(dir_okay=False),
              help="JSON settings file with OktaDomain / ApiToken (default: ./settings.json if present)")
@click.option("--auth-scheme", type=click.Choice(AUTH_SCHEMES, case_sensitive=False),
              help="Authorization scheme: SSWS for API tokens, Bearer for OAuth access tokens")
@click.option("--format", "fmt", type=click.Choice(FORMATS), default="csv", show_default=True,
              help="Report file format")
@click.option("--output-dir", type=click.Path(file_okay=False), default=".", show_default=True,
              help="Directory for the timestamped report file")
@click.option("--active-only", is_flag=True, help="Only report applications with status ACTIVE")
@click.option("--timeout", type=float, default=None, help="Per-request timeout in seconds")
@click.option("--tls-no-verify", is_flag=True, help="Skip TLS certificate verification")
@click.option("--ca-bundle", type=click.Path(exists=True, dir_okay=False),
              help="CA bundle for TLS certificate verification")
@click.option("--proxy", help="HTTP/HTTPS proxy URL")
@click.option("--pace-seconds", type=click.FloatRange(min=0), default=DEFAULT_PACE_SECONDS,
              show_default=True, help="Delay before each per-application API call")
@click.option("--backoff-seconds", type=click.FloatRange(min=0), default=DEFAULT_BACKOFF_SECONDS,
              show_default=True, help="Wait before the single retry after HTTP 429")
@click.option("-v", "--verbose", is_flag=True, help="Show per-call detail")
@click.version_option(version=__version__)
def main(domain: Optional[str], token: Optional[str], config_path: Optional[str],
         auth_scheme: Optional[str], fmt: str, output_dir: str, active_only: bool,
         timeout: Optional[float], tls_no_verify: bool, ca_bundle: Optional[str],
         proxy: Optional[str], pace_seconds: float, backoff_seconds: float, verbose: bool):
    """Report user provisioning settings for every application in an Okta org.

    For each application: whether provisioning is enabled, which lifecycle
    operations (create / update / deactivate) are active, and which user
    attributes are synchronized.  Writes a timestamped CSV (or JSON) file.

    Examples:

    \b
      provisioning-inventory --domain example.okta.com --token 00abc...
      OKTA_DOMAIN=example.okta.com OKTA_API_TOKEN=00abc... provisioning-inventory
      provisioning-inventory --config settings.json --format json --output-dir reports
    """
    console.set_verbose(verbose)

    try:
        settings = load_settings(domain=domain, token=token, config_path=config_path,
                                 auth_scheme=auth_scheme)
    except ConfigError as e:
        console.error(str(e))
        sys.exit(2)

    try:
        exit_code = run_inventory(
            settings,
            output_dir=output_dir,
            fmt=fmt,
            active_only=active_only,
            tls_no_verify=tls_no_verify,
            timeout=timeout,
            proxy=proxy,
            ca_bundle=ca_bundle,
            pace_seconds=pace_seconds,
            backoff_seconds=backoff_seconds,
        )
    except KeyboardInterrupt:
        console.error("Interrupted, no report written")
        sys.exit(130)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
