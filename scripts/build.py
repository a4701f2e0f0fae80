#!/usr/bin/env python3
"""
Build script for Python Lambda functions

Each function directory under src/ is packaged together with the shared
affiliate_service package and its third-party dependencies.
"""
import os
import shutil
import subprocess
import sys
import zipfile
from pathlib import Path

SERVICE_PACKAGE = "affiliate_service"
IGNORED_PATTERNS = shutil.ignore_patterns("__pycache__", "*.pyc", "test_*.py")


def main():
    """Main build function"""
    project_root = Path(__file__).parent.parent
    src_dir = project_root / "src"
    build_dir = project_root / "build"

    # Create build directory
    build_dir.mkdir(exist_ok=True)

    # Function directories hold a lambda_function.py entry point
    functions = [
        d for d in src_dir.iterdir()
        if d.is_dir() and (d / "lambda_function.py").exists()
    ]

    print(f"Building Lambda functions: {[f.name for f in functions]}")

    for function_dir in functions:
        function_name = function_dir.name
        zip_path = build_dir / f"{function_name}.zip"

        print(f"Building {function_name}...")

        # Create temporary directory for packaging
        temp_dir = build_dir / f"temp_{function_name}"
        if temp_dir.exists():
            shutil.rmtree(temp_dir)
        temp_dir.mkdir()

        # Copy function files
        shutil.copytree(function_dir, temp_dir, dirs_exist_ok=True, ignore=IGNORED_PATTERNS)

        # Install the service package with its runtime dependencies
        print(f"Installing {SERVICE_PACKAGE} for {function_name}...")
        subprocess.run([
            sys.executable, "-m", "pip", "install",
            str(project_root),
            "-t", str(temp_dir),
            "--no-compile",
        ], check=True)

        # Create zip archive
        print(f"Creating {function_name}.zip...")
        with zipfile.ZipFile(zip_path, 'w', zipfile.ZIP_DEFLATED) as zipf:
            for root, _, files in os.walk(temp_dir):
                for file in files:
                    file_path = Path(root) / file
                    arcname = file_path.relative_to(temp_dir)
                    zipf.write(file_path, arcname)

        # Clean up temporary directory
        shutil.rmtree(temp_dir)

        print(f"{function_name}.zip created ({zip_path.stat().st_size} bytes)")

    print("Build complete!")


if __name__ == "__main__":
    main()
