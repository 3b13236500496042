from __future__ import annotations

from pathlib import Path
import csv
import json

from .measure import RegionMeasurement


def write_report(report: dict, path: str | Path) -> None:
    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(json.dumps(report, indent=2, ensure_ascii=False), encoding="utf-8")


def write_regions_csv(path: str | Path, regions: list[RegionMeasurement]) -> None:
    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with out_path.open("w", newline="", encoding="utf-8") as fh:
        writer = csv.writer(fh)
        writer.writerow(
            [
                "label",
                "area",
                "perimeter",
                "circularity",
                "elongation",
                "x_centroid",
                "y_centroid",
                "radius1",
                "radius2",
                "orientation_deg",
            ]
        )
        for region in regions:
            ellipse = region.ellipse
            writer.writerow(
                [
                    region.label,
                    region.area,
                    region.perimeter,
                    region.circularity,
                    region.elongation,
                    ellipse.x_centroid,
                    ellipse.y_centroid,
                    ellipse.radius1,
                    ellipse.radius2,
                    ellipse.orientation_deg,
                ]
            )
