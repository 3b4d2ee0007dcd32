"""
Common utility functions for openapiproto.
"""

# pylint: disable=line-too-long

import logging
import os
from urllib.parse import urlparse

import jinja2
import requests

from openapiproto.naming import to_pascal_case, to_snake_case

logger = logging.getLogger(__name__)


def process_template(file_path: str, **kvargs) -> str:
    """
    Process a file as a Jinja2 template with the given object as input.

    Args:
        file_path (str): The path to the template, relative to this package.
        **kvargs: The keyword arguments to pass to the template.

    Returns:
        str: The processed template as a string.
    """
    file_dir = os.path.dirname(__file__)
    template_loader = jinja2.FileSystemLoader(searchpath=file_dir)
    template_env = jinja2.Environment(loader=template_loader, trim_blocks=True, lstrip_blocks=True, keep_trailing_newline=True)
    template_env.filters['pascal'] = to_pascal_case
    template_env.filters['snake'] = to_snake_case

    template = template_env.get_template(file_path)
    return template.render(**kvargs)


def fetch_content(url: str) -> str:
    """
    Fetch content from a URL or file path.

    Args:
        url: An http(s) URL, a file URL or a local path.

    Returns:
        The content as a string.

    Raises:
        requests.RequestException: If there is an error fetching from HTTP/HTTPS.
        FileNotFoundError: If the file does not exist.
    """
    parsed_url = urlparse(url)
    if parsed_url.scheme in ['http', 'https']:
        logger.info("fetching %s", url)
        response = requests.get(url, timeout=30)
        response.raise_for_status()
        content = response.text
    elif parsed_url.scheme == 'file' or not parsed_url.scheme or (os.name == 'nt' and len(parsed_url.scheme) == 1):
        file_path = parsed_url.path if parsed_url.scheme == 'file' else url
        if os.name == 'nt' and parsed_url.scheme == 'file' and file_path.startswith('/'):
            file_path = file_path[1:]
        with open(file_path, 'r', encoding='utf-8') as f:
            content = f.read()
    else:
        raise ValueError(f"Unsupported URL scheme: {parsed_url.scheme}")

    return content


def write_file(file_path: str, content: str) -> None:
    """Write content to a file, creating the directory if needed."""
    directory = os.path.dirname(file_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(file_path, 'w', encoding='utf-8') as f:
        f.write(content)
    logger.info("wrote %s", file_path)
