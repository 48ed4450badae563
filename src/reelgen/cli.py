"""CLI entry point for the reel generator."""

import asyncio
import logging
from pathlib import Path
from typing import Optional, Tuple

import typer
from PIL import Image

from . import __version__
from .config import config
from .errors import EncoderUnavailable, InvalidScene, ReelError
from .models import Aspect, PromoCopy, PromoManifest, Scene
from .models.scene import MAX_DURATION_SECONDS, MIN_DURATION_SECONDS

app = typer.Typer(
    name="reel-maker",
    help="Ken-Burns promotional reels from a single image",
    no_args_is_help=True
)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
    )


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"reel-maker version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit"
    )
) -> None:
    """Reel Maker - Turn one photo into an Instagram-ready promo clip."""
    pass


def _load_manifest(manifest: Optional[Path]) -> Tuple[PromoManifest, Path]:
    if manifest is None:
        return PromoManifest(project_name="reel"), Path(".")
    try:
        return PromoManifest.from_yaml(manifest), manifest.parent
    except Exception as e:
        typer.echo(f"❌ Error loading manifest: {e}")
        raise typer.Exit(1)


def _build_scene(
    image: Optional[Path],
    manifest: PromoManifest,
    base: Path,
    aspect: Optional[Aspect],
    duration: Optional[int],
) -> Scene:
    from .editor import load_image

    image_path = image or manifest.image_path(base)
    if image_path is None:
        typer.echo("❌ No image given (pass IMAGE or set 'image' in the manifest)")
        raise typer.Exit(1)

    try:
        source = load_image(image_path)
    except (FileNotFoundError, OSError) as e:
        typer.echo(f"❌ Error loading image: {e}")
        raise typer.Exit(1)

    return Scene(
        source_image=source,
        aspect=aspect or manifest.aspect,
        duration_seconds=duration or manifest.duration_seconds,
        frame_width=config.frame_width,
    )


@app.command()
def init(
    output: Path = typer.Option(
        Path("reel.yaml"),
        "--output",
        "-o",
        help="Output manifest file path"
    ),
    image: Optional[str] = typer.Option(
        None,
        "--image",
        "-i",
        help="Path to the source image"
    ),
    aspect: Aspect = typer.Option(
        Aspect.STORY,
        "--aspect",
        "-a",
        help="Instagram ratio: 9:16 (Stories/Reels) or 4:5 (Feed)"
    ),
    duration: int = typer.Option(
        MAX_DURATION_SECONDS,
        "--duration",
        "-d",
        help="Clip duration in seconds",
        min=MIN_DURATION_SECONDS,
        max=MAX_DURATION_SECONDS
    ),
    force: bool = typer.Option(
        False,
        "--force",
        "-f",
        help="Overwrite an existing manifest"
    ),
) -> None:
    """Write a manifest with the default promotional copy."""
    if output.exists() and not force:
        typer.echo(f"❌ {output} already exists (use --force to overwrite)")
        raise typer.Exit(1)

    manifest = PromoManifest(
        project_name=output.stem,
        image=image,
        aspect=aspect,
        duration_seconds=duration,
        promo_copy=PromoCopy(),
    )

    try:
        output.parent.mkdir(parents=True, exist_ok=True)
        manifest.to_yaml(output)
    except Exception as e:
        typer.echo(f"❌ Error saving manifest: {e}")
        raise typer.Exit(1)

    typer.echo(f"✅ Manifest saved: {output}")
    typer.echo(f"   Edit the copy, then run 'reel-maker render --manifest {output}'")


@app.command()
def info(
    manifest: Optional[Path] = typer.Option(
        None,
        "--manifest",
        "-m",
        help="Path to reel manifest YAML",
        exists=True,
        file_okay=True,
        dir_okay=False
    ),
    aspect: Optional[Aspect] = typer.Option(
        None,
        "--aspect",
        "-a",
        help="Override the manifest aspect ratio"
    ),
    duration: Optional[int] = typer.Option(
        None,
        "--duration",
        "-d",
        help="Override the manifest duration",
        min=MIN_DURATION_SECONDS,
        max=MAX_DURATION_SECONDS
    ),
) -> None:
    """Show output settings for a reel."""
    from .editor import suggested_file_name
    from .models import build_overlays

    loaded, _ = _load_manifest(manifest)
    scene = Scene(
        aspect=aspect or loaded.aspect,
        duration_seconds=duration or loaded.duration_seconds,
        frame_width=config.frame_width,
    )
    size = scene.frame_size

    typer.echo(f"📁 Project: {loaded.project_name}")
    typer.echo(f"   Aspect ratio: {scene.aspect.value}")
    typer.echo(f"   Frame size: {size.width}x{size.height}")
    typer.echo(f"   Duration: {scene.duration_seconds}s @ {config.fps}fps")
    typer.echo(f"   Frames: {scene.duration_seconds * config.fps}")
    typer.echo(f"   Format: {config.mime_type}")
    try:
        typer.echo(f"   File: {suggested_file_name(scene.aspect.value, config.mime_type)}")
    except EncoderUnavailable as e:
        typer.echo(f"⚠️  {e}")

    typer.echo("\n📝 Overlays:")
    for element in build_overlays(loaded.promo_copy):
        start = element.schedule.delay_seconds
        typer.echo(f"   • {element.kind.value} (from {start:g}s): {element.text}")


@app.command()
def frame(
    image: Optional[Path] = typer.Argument(
        None,
        help="Source image (defaults to the manifest's image)"
    ),
    at: float = typer.Option(
        0.0,
        "--at",
        "-t",
        help="Elapsed time of the frame in seconds",
        min=0.0
    ),
    manifest: Optional[Path] = typer.Option(
        None,
        "--manifest",
        "-m",
        help="Path to reel manifest YAML",
        exists=True,
        file_okay=True,
        dir_okay=False
    ),
    aspect: Optional[Aspect] = typer.Option(
        None,
        "--aspect",
        "-a",
        help="Instagram ratio: 9:16 or 4:5"
    ),
    duration: Optional[int] = typer.Option(
        None,
        "--duration",
        "-d",
        help="Clip duration in seconds",
        min=MIN_DURATION_SECONDS,
        max=MAX_DURATION_SECONDS
    ),
    output: Path = typer.Option(
        Path("frame.png"),
        "--output",
        "-o",
        help="Output image file path"
    ),
) -> None:
    """Render a single frame at a point on the timeline."""
    from .editor import Compositor, TimelineClock, camera_at
    from .models import build_overlays

    loaded, base = _load_manifest(manifest)
    scene = _build_scene(image, loaded, base, aspect, duration)

    clock = TimelineClock(scene.duration_seconds)
    clock.start()
    clock.tick(0.0)
    tick = clock.tick(at)

    buffer = Image.new("RGBA", scene.frame_size)
    compositor = Compositor(build_overlays(loaded.promo_copy))
    compositor.render(buffer, scene, camera_at(tick.t), tick.elapsed_seconds, tick.t)

    output.parent.mkdir(parents=True, exist_ok=True)
    buffer.convert("RGB").save(output)
    typer.echo(f"✅ Frame at {at:.2f}s (t={tick.t:.3f}) saved: {output}")


async def _record_realtime(studio, stop_after: Optional[float]):
    from .editor.session import TERMINAL_STATES

    loop = asyncio.get_running_loop()
    done = loop.create_future()

    session = studio.start_recording()
    if session.state in TERMINAL_STATES:
        return session

    def on_state(_, state):
        if state in TERMINAL_STATES and not done.done():
            done.set_result(state)

    session.on_state_change(on_state)
    if stop_after is not None:
        loop.call_later(stop_after, studio.stop_recording)
    await done
    return session


def _record_headless(studio, scheduler, stop_after: Optional[float]):
    from .editor.session import TERMINAL_STATES

    session = studio.start_recording()
    if stop_after is not None:
        scheduler.call_later(stop_after, studio.stop_recording)
    scheduler.run_until(lambda: session.state in TERMINAL_STATES)
    return session


@app.command()
def render(
    image: Optional[Path] = typer.Argument(
        None,
        help="Source image (defaults to the manifest's image)"
    ),
    manifest: Optional[Path] = typer.Option(
        None,
        "--manifest",
        "-m",
        help="Path to reel manifest YAML",
        exists=True,
        file_okay=True,
        dir_okay=False
    ),
    aspect: Optional[Aspect] = typer.Option(
        None,
        "--aspect",
        "-a",
        help="Instagram ratio: 9:16 (Stories/Reels) or 4:5 (Feed)"
    ),
    duration: Optional[int] = typer.Option(
        None,
        "--duration",
        "-d",
        help="Clip duration in seconds",
        min=MIN_DURATION_SECONDS,
        max=MAX_DURATION_SECONDS
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output file or directory (defaults to the workspace)"
    ),
    realtime: bool = typer.Option(
        False,
        "--realtime",
        help="Record against the wall clock instead of rendering as fast as possible"
    ),
    stop_after: Optional[float] = typer.Option(
        None,
        "--stop-after",
        help="Stop early after this many seconds (truncates the clip)",
        min=0.0
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging"
    ),
) -> None:
    """Record the reel and write the encoded clip."""
    from .editor import AsyncioScheduler, Studio, VirtualScheduler

    setup_logging(verbose)

    try:
        config.validate_required()
    except ValueError as e:
        typer.echo(f"❌ Configuration error: {e}")
        raise typer.Exit(1)

    loaded, base = _load_manifest(manifest)
    scene = _build_scene(image, loaded, base, aspect, duration)
    size = scene.frame_size

    typer.echo(f"🎬 Rendering {scene.aspect.value} reel ({size.width}x{size.height})")
    typer.echo(f"   Duration: {scene.duration_seconds}s @ {config.fps}fps")
    if stop_after is not None:
        typer.echo(f"   Stopping after: {stop_after}s")

    try:
        if realtime:
            async def run():
                studio = Studio(AsyncioScheduler(fps=config.fps), scene, promo=loaded.promo_copy)
                return await _record_realtime(studio, stop_after)

            session = asyncio.run(run())
        else:
            scheduler = VirtualScheduler(fps=config.fps)
            studio = Studio(scheduler, scene, promo=loaded.promo_copy)
            session = _record_headless(studio, scheduler, stop_after)
    except InvalidScene as e:
        typer.echo(f"❌ Invalid scene: {e}")
        raise typer.Exit(1)
    except ReelError as e:
        typer.echo(f"❌ Error rendering reel: {e}")
        raise typer.Exit(1)

    artifact = session.artifact
    if artifact is None:
        typer.echo(f"❌ Recording failed: {session.error}")
        raise typer.Exit(1)

    target = output or config.workspace
    if not target.suffix:
        target.mkdir(parents=True, exist_ok=True)
    saved = artifact.save(target)

    typer.echo(f"\n✅ Video ready: {saved}")
    typer.echo(f"   Frames: {artifact.frame_count} ({artifact.duration_seconds:.1f}s)")
    typer.echo(f"   Size: {artifact.size / 1024:.0f} KiB")

if __name__ == "__main__":
    app()
