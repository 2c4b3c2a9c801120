"""
Quick launcher for the CreatorPulse Streamlit dashboard
"""
import subprocess
import sys
import os


def main():
    """Launch Streamlit dashboard"""
    script_dir = os.path.dirname(os.path.abspath(__file__))
    os.chdir(script_dir)

    print("Starting CreatorPulse dashboard...")
    print("Dashboard will open in your browser at http://localhost:8501")
    return subprocess.run([sys.executable, "-m", "streamlit", "run", "streamlit_app.py"]).returncode


if __name__ == "__main__":
    sys.exit(main())
