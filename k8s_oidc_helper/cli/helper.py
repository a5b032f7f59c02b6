#!/usr/bin/env python3
import argparse
import logging
import os
import sys
import webbrowser

import k8s_oidc_helper
from k8s_oidc_helper.auth import MicrosoftAuthProvider
from k8s_oidc_helper.config import HelperConfig, resolve_credentials
from k8s_oidc_helper.errors import HelperError
from k8s_oidc_helper.kubeconfig import HEADER, generate_user, render_users
from k8s_oidc_helper.settings import ENV_CLIENT_ID, ENV_CLIENT_SECRET, ENV_LOG_LEVEL

LOG = logging.getLogger("k8s_oidc_helper")

CODE_PROMPT = "Enter the code Microsoft gave you: "


def setup_logging(level_str):
    level = getattr(logging, str(level_str).upper(), logging.WARNING)
    for handler in list(LOG.handlers):
        LOG.removeHandler(handler)
    h = logging.StreamHandler(sys.stderr)
    h.setFormatter(logging.Formatter("%(asctime)s %(levelname)s: %(message)s"))
    LOG.addHandler(h)
    LOG.setLevel(level)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="k8s-oidc-helper",
        description="Exchange a Microsoft authorization code for OIDC tokens and print a kubectl user entry",
        epilog=f"--client-id and --client-secret default to the {ENV_CLIENT_ID} and {ENV_CLIENT_SECRET} environment variables.",
    )
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"k8s-oidc-helper {k8s_oidc_helper.__version__}",
        help="print version and exit",
    )
    parser.add_argument(
        "-o",
        "--open",
        dest="open_browser",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Open the oauth approval URL in the browser (default: on)",
    )
    parser.add_argument(
        "--client-id",
        default=os.environ.get(ENV_CLIENT_ID, ""),
        help="The ClientID for the application",
    )
    parser.add_argument(
        "--client-secret",
        default=os.environ.get(ENV_CLIENT_SECRET, ""),
        help="The ClientSecret for the application",
    )
    parser.add_argument(
        "-c",
        "--config",
        help="Path to a json file containing your application's ClientID and ClientSecret. Supersedes the --client-id and --client-secret flags.",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get(ENV_LOG_LEVEL, "WARNING"),
        help="Diagnostics level on stderr (DEBUG, INFO, WARNING, ERROR; default WARNING)",
    )
    return parser.parse_args(argv)


def build_config(args):
    credentials = resolve_credentials(args.config, args.client_id, args.client_secret)
    return HelperConfig(credentials=credentials, open_browser=args.open_browser)


def open_in_browser(url):
    """Try to open url, returning False when no browser could be launched."""
    try:
        return webbrowser.open(url)
    except webbrowser.Error as e:
        LOG.warning("could not open browser: %s", e)
        return False


def read_code():
    return input(CODE_PROMPT).strip()


def generate(config):
    """Run the login flow and return the kubeconfig fragment."""
    auth = MicrosoftAuthProvider(config.credentials, config.provider)
    url = auth.authorization_url

    opened = config.open_browser and open_in_browser(url)
    if not opened:
        print(f"Open this url in your browser: {url}")

    code = read_code()
    tokens = auth.fetch_tokens(code)
    email = auth.fetch_user_email(tokens.access_token)
    LOG.info("signed in as %s", email)

    user = generate_user(
        email,
        config.credentials.client_id,
        config.credentials.client_secret,
        tokens.id_token,
        tokens.refresh_token,
        config.provider,
    )
    return render_users([user])


def run(argv=None):
    args = parse_args(argv)
    setup_logging(args.log_level)
    try:
        config = build_config(args)
        document = generate(config)
    except HelperError as e:
        LOG.debug("aborting", exc_info=True)
        print(e.user_message(), file=sys.stderr)
        return e.exit_code
    except EOFError:
        print("\nError getting tokens: no authorization code entered", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print(file=sys.stderr)
        return 130

    print()
    print(HEADER)
    print(document)
    return 0


def main():
    sys.exit(run())


if __name__ == "__main__":
    main()
