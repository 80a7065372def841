"""
Sample packages tree generator for local smoke runs of the store publisher.

Writes ``<output>/<developer>/<group>/<app>/`` bundles with deterministic
pseudo-random metadata, an SVG icon, optional screenshots, and optionally a
package artifact, so `store-publisher build --dry-run` has something to chew on
without checking out real submodules.
"""

from __future__ import annotations

import json
import random
import time
from pathlib import Path

import typer

app = typer.Typer(help="Generate a sample packages/ tree of app bundles.")

CATEGORIES = ["Productivity", "Communications", "Developer Tools", "Media", "Games"]
ICON_TEMPLATE = (
    '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 64 64">'
    '<rect width="64" height="64" fill="#{color:06x}"/></svg>\n'
)
# Smallest valid 1x1 PNG; screenshots only need to exist.
PNG_STUB = bytes.fromhex(
    "89504e470d0a1a0a0000000d4948445200000001000000010806000000"
    "1f15c4890000000d49444154789c6360000002000154a24f5d0000000049454e44ae426082"
)


def _metadata(rng: random.Random, slug: str, index: int) -> dict:
    return {
        "appId": f"{slug}-{rng.randrange(16**8):08x}",
        "name": slug.replace("-", " ").title(),
        "version": f"1.{index}.0",
        "versionNumber": index + 1,
        "packageId": f"{rng.randrange(16**16):016x}",
        "shortDescription": f"Sample app number {index}",
        "categories": rng.sample(CATEGORIES, k=rng.randint(0, 2)),
        "isOpenSource": rng.choice([True, False]),
        "webLink": f"https://example.org/{slug}",
        "codeLink": rng.choice(["", f"https://example.org/{slug}/src"]),
        "upstreamAuthor": "Example Upstream",
        "createdAt": 1_700_000_000 + index * 86_400,
        "author": {"name": f"Developer {index % 3}", "githubUsername": f"dev{index % 3}"},
    }


def _generate_bundles(
    output: Path, apps: int, seed: int, package_bytes: int, screenshots: int
) -> list[Path]:
    rng = random.Random(seed)
    bundles: list[Path] = []
    for index in range(apps):
        slug = f"sample-app-{index:03d}"
        bundle = output / f"developer-{index % 3}" / "apps-repo" / slug
        bundle.mkdir(parents=True, exist_ok=True)

        (bundle / "metadata.json").write_text(
            json.dumps(_metadata(rng, slug, index), indent=2) + "\n", encoding="utf-8"
        )
        (bundle / "icon.svg").write_text(ICON_TEMPLATE.format(color=rng.randrange(16**6)), encoding="utf-8")
        (bundle / "description.md").write_text(f"# {slug}\n\nLong-form description.\n", encoding="utf-8")

        if package_bytes:
            (bundle / "app.spk").write_bytes(rng.randbytes(package_bytes))
        if screenshots:
            shots = bundle / "screenshots"
            shots.mkdir(exist_ok=True)
            for n in range(screenshots):
                (shots / f"{n:02d}.png").write_bytes(PNG_STUB)
        bundles.append(bundle)
    return bundles


@app.command()
def main(
    output: Path = typer.Option(
        Path("packages"),
        "--output",
        "-o",
        help="Root of the packages tree to create.",
    ),
    apps: int = typer.Option(
        10,
        "--apps",
        "-n",
        help="Number of app bundles to generate.",
    ),
    seed: int = typer.Option(
        42,
        "--seed",
        help="Deterministic RNG seed.",
    ),
    package_bytes: int = typer.Option(
        4096,
        "--package-bytes",
        help="Size of each generated app.spk (0 for metadata-only bundles).",
    ),
    screenshots: int = typer.Option(
        2,
        "--screenshots",
        help="Screenshots per bundle.",
    ),
) -> None:
    """
    Generate sample app bundles.
    """
    start = time.perf_counter()
    bundles = _generate_bundles(output, apps, seed, package_bytes, screenshots)
    elapsed = time.perf_counter() - start
    typer.echo(f"Generated {len(bundles)} bundles under {output}/ in {elapsed:.2f}s")


if __name__ == "__main__":
    app()
