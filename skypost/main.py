"""
SkyPost Command Line

Publishes one post to the configured AT Protocol account, with optional
link card or images.

Usage:
    python -m skypost.main "Hello #bluesky" --url https://example.com
    python -m skypost.main "Two photos" --image a.jpg --alt "First" --image b.png --alt "Second"
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from skypost.config import settings
from skypost.config.validators import get_config_summary, validate_settings
from skypost.data.models import Image, Post
from skypost.services.post_service import create_post_service
from skypost.utils.exceptions import SkyPostError
from skypost.utils.helpers import get_mime_type
from skypost.utils.logger import get_logger, setup_file_logging

# Set up logging
logger = get_logger(__name__)


def parse_arguments(argv: Optional[List[str]] = None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description='Publish a post to Bluesky')
    parser.add_argument('text', type=str, help='Post text')
    parser.add_argument('--url', type=str, default=None, help='Link to show as a preview card')
    parser.add_argument('--image', type=str, action='append', default=[], dest='images',
                        help='Image file to attach (repeatable, order is kept)')
    parser.add_argument('--alt', type=str, action='append', default=[], dest='alts',
                        help='Alt text for the image at the same position (repeatable)')
    parser.add_argument('--lang', type=str, action='append', default=None, dest='languages',
                        help='Post language tag (repeatable), defaults to DEFAULT_LANGUAGES')
    parser.add_argument('--no-card', action='store_true', help='Do not generate a link preview card')
    parser.add_argument('--reuse-session', action='store_true', help='Cache the session between posts')
    parser.add_argument('--log-file', type=str, default='skypost.log', help='Log file path')
    parser.add_argument('--log-level', type=str, choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        default='INFO', help='Logging level')
    return parser.parse_args(argv)


def load_images(paths: List[str], alts: List[str]) -> List[Image]:
    """
    Read image files for the post.

    Args:
        paths: Image file paths, in display order.
        alts: Alt texts, matched to paths by position; missing entries become "".

    Returns:
        List[Image]: The images, with MIME types taken from the file extensions.
    """
    images = []
    for position, path in enumerate(paths):
        image_path = Path(path)
        alt = alts[position] if position < len(alts) else ""
        images.append(Image(
            content=image_path.read_bytes(),
            mime_type=get_mime_type(image_path.suffix),
            alt=alt,
        ))
    return images


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the application."""
    args = parse_arguments(argv)

    # Set up logging
    log_level = getattr(logging, args.log_level)
    setup_file_logging(args.log_file, log_level)

    logger.info("Starting SkyPost")

    try:
        validate_settings()
        logger.debug(f"Configuration: {get_config_summary()}")

        post = Post(
            text=args.text,
            languages=args.languages,
            url=args.url,
            images=load_images(args.images, args.alts),
            generate_card=not args.no_card,
        )

        service = create_post_service(reuse_session=args.reuse_session or settings.BLUESKY_REUSE_SESSION)
        result = service.publish(post)

        logger.info(f"Post published: {result.uri}")
        exit_code = 0

    except SkyPostError as e:
        logger.error(f"Publishing failed: {e}", exc_info=True)
        exit_code = 1
    except Exception as e:
        logger.error(f"Unhandled exception in SkyPost: {e}", exc_info=True)
        exit_code = 2

    logger.info(f"SkyPost finished with exit code {exit_code}")
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
