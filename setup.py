from setuptools import find_packages, setup
from pathlib import Path

setup(
    name="video_polygon_annotation",
    version=Path("./video_polygon_annotation/VERSION").read_text().strip(),
    description="Draw polygons on a captured video frame and export them in video coordinates",
    packages=find_packages(exclude=["tests", "examples"]),
    package_data={"video_polygon_annotation": ["VERSION"]},
    python_requires=">=3.8",
    install_requires=[
        "numpy",
        "opencv-python",
        "easydict",
        "matplotlib",
    ],
    extras_require={
        "test": ["pytest"],
        "web": ["fastapi", "uvicorn", "python-multipart"],
    },
    entry_points={
        "console_scripts": [
            "video_polygon_annotation=video_polygon_annotation.cli:main",
        ]
    },
)
