#!/usr/bin/env python3
"""
Logo Animator - Main Entry Point

Design a logo, then bring it to life.

Usage:
    # Start server mode (HTTP + SSE for the browser)
    python main.py server

    # Generate a logo image
    python main.py generate --prompt "A minimalist owl icon" --output owl.png

    # Animate an existing image
    python main.py animate --image owl.png --aspect-ratio 9:16 --output owl.mp4

    # Generate and animate in one go
    python main.py create --prompt "A minimalist owl icon" --output owl.mp4
"""

import argparse
import asyncio
import logging
import shutil
import sys
from pathlib import Path
from typing import Optional

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("logoanimator")


def _build_studio():
    from cli.console import StudioConsole
    from core.config import get_config
    from core.credentials import PromptCredentialProvider
    from services.orchestrator import LogoStudio

    config = get_config()
    for issue in config.validate():
        logger.warning(issue)

    studio = LogoStudio(credentials=PromptCredentialProvider(), config=config)
    studio.on_change(StudioConsole().render)
    return studio


def _save_image(studio, output: Optional[str]) -> bool:
    image = studio.state.image
    if image is None:
        return False
    if output:
        Path(output).write_bytes(image.to_bytes())
        logger.info(f"Logo saved to {output}")
    return True


def _save_video(studio, output: Optional[str]) -> bool:
    video = studio.state.video
    if video is None:
        return False
    if output:
        shutil.copyfile(video.path, output)
        logger.info(f"Animation saved to {output}")
    else:
        # The session file is released on close, keep a copy next to us
        target = Path.cwd() / video.path.name
        shutil.copyfile(video.path, target)
        logger.info(f"Animation saved to {target}")
    return True


async def generate_logo(prompt: str, output: Optional[str]) -> bool:
    """Generate a logo image and optionally save it."""
    studio = _build_studio()
    try:
        await studio.generate_logo(prompt)
        return _save_image(studio, output)
    finally:
        await studio.close()


async def animate_image(image: str, aspect_ratio: str, output: Optional[str]) -> bool:
    """Animate an image file."""
    studio = _build_studio()
    try:
        await studio.upload_file(image)
        if studio.state.image is None:
            return False
        await studio.animate_logo(aspect_ratio)
        return _save_video(studio, output)
    finally:
        await studio.close()


async def create_animation(
    prompt: str,
    aspect_ratio: str,
    output: Optional[str],
    image_output: Optional[str],
) -> bool:
    """Generate a logo, then animate it."""
    studio = _build_studio()
    try:
        await studio.generate_logo(prompt)
        if not _save_image(studio, image_output):
            return False
        await studio.animate_logo(aspect_ratio)
        return _save_video(studio, output)
    finally:
        await studio.close()


def main():
    parser = argparse.ArgumentParser(
        description="Logo Animator - design a logo, then bring it to life",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Start the studio server
    python main.py server

    # Generate a logo
    python main.py generate --prompt "A stylized phoenix rising from ashes"

    # Animate an uploaded logo in portrait
    python main.py animate --image logo.png --aspect-ratio 9:16

    # Both steps
    python main.py create --prompt "A minimalist owl icon for an education app"
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Server command
    server_parser = subparsers.add_parser("server", help="Start the studio server")
    server_parser.add_argument("--host", default="0.0.0.0", help="Host to bind")
    server_parser.add_argument("--port", type=int, default=8765, help="Port to bind")

    # Generate command
    gen_parser = subparsers.add_parser("generate", help="Generate a logo image")
    gen_parser.add_argument("--prompt", "-p", required=True, help="Logo description")
    gen_parser.add_argument("--output", "-o", help="Where to save the PNG")

    # Animate command
    anim_parser = subparsers.add_parser("animate", help="Animate an image file")
    anim_parser.add_argument("--image", "-i", required=True, help="Image file to animate")
    anim_parser.add_argument(
        "--aspect-ratio",
        "-a",
        choices=["16:9", "9:16"],
        default="16:9",
        help="Video aspect ratio",
    )
    anim_parser.add_argument("--output", "-o", help="Where to save the MP4")

    # Create command
    create_parser = subparsers.add_parser("create", help="Generate a logo and animate it")
    create_parser.add_argument("--prompt", "-p", required=True, help="Logo description")
    create_parser.add_argument(
        "--aspect-ratio",
        "-a",
        choices=["16:9", "9:16"],
        default="16:9",
        help="Video aspect ratio",
    )
    create_parser.add_argument("--output", "-o", help="Where to save the MP4")
    create_parser.add_argument("--image-output", help="Where to save the PNG")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    # Run appropriate command
    if args.command == "server":
        from services.orchestrator.server import run_server

        run_server(host=args.host, port=args.port)

    elif args.command == "generate":
        ok = asyncio.run(generate_logo(args.prompt, args.output))
        sys.exit(0 if ok else 1)

    elif args.command == "animate":
        ok = asyncio.run(animate_image(args.image, args.aspect_ratio, args.output))
        sys.exit(0 if ok else 1)

    elif args.command == "create":
        ok = asyncio.run(
            create_animation(args.prompt, args.aspect_ratio, args.output, args.image_output)
        )
        sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
