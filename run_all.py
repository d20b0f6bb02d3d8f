#!/usr/bin/env python3
"""
Run the whole AKI analysis

Order:
  01 data audit -> 02 LOWESS grid -> 03 spline exploration -> 04 model training and evaluation
  (02 and 03 are diagnostic only; 04 does not depend on them)

Prerequisite:
  data/raw/aki_trial_data.csv (comma-separated, header row, the 15 analysis columns)

Usage:
  python run_all.py                      # all steps, stop at the first failure
  python run_all.py --skip-exploratory   # 01 and 04 only
  python run_all.py --continue-on-error
"""
import argparse
import os
import subprocess
import sys

PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))

# step id -> (working directory, script, description)
_STEP_DEFS = {
    "01": ("scripts/preprocess", "01_aki_data_audit.py", "Data loading and audit"),
    "02": ("scripts/audit_eval", "02_exploratory_lowess.py", "Exploratory LOWESS grid"),
    "03": ("scripts/audit_eval", "03_spline_exploration.py", "Exploratory spline model"),
    "04": ("scripts/modeling", "04_model_training_main.py", "Model training and evaluation"),
}
EXPLORATORY_STEPS = {"02", "03"}


def build_steps(skip_exploratory: bool = False) -> list[tuple[str, str, str, str]]:
    return [(sid, *_STEP_DEFS[sid]) for sid in _STEP_DEFS
            if not (skip_exploratory and sid in EXPLORATORY_STEPS)]


def check_prereq() -> tuple[bool, str]:
    raw = os.path.join(PROJECT_ROOT, "data", "raw", "aki_trial_data.csv")
    if not os.path.exists(raw):
        return False, f"missing {raw}"
    return True, ""


def run_step(step_id: str, workdir: str, script: str, desc: str) -> bool:
    abs_workdir = os.path.join(PROJECT_ROOT, workdir)
    abs_script = os.path.join(abs_workdir, script)
    if not os.path.exists(abs_script):
        print(f"\n[error] Step {step_id}: script not found {abs_script}")
        return False
    print(f"\n{'='*60}")
    print(f"Step {step_id}: {desc}")
    print(f"  {workdir} / {script}")
    print("="*60)
    ret = subprocess.run(
        [sys.executable, script],
        cwd=abs_workdir,
        env={**os.environ, "PYTHONUNBUFFERED": "1"},
    )
    return ret.returncode == 0


def main():
    parser = argparse.ArgumentParser(description="Run the AKI 14-day mortality analysis")
    parser.add_argument("--skip-exploratory", action="store_true", help="skip the diagnostic steps 02 and 03")
    parser.add_argument("--continue-on-error", action="store_true", help="keep going after a failed step")
    args = parser.parse_args()

    ok, msg = check_prereq()
    if not ok:
        print(f"❌ {msg}")
        sys.exit(1)

    steps = build_steps(args.skip_exploratory)
    print("\n" + "="*60)
    print("AKI 14-day mortality model: full run")
    print("="*60)
    print(f"{len(steps)} steps: {', '.join(s[0] for s in steps)}")

    failed = []
    for step_id, workdir, script, desc in steps:
        if not run_step(step_id, workdir, script, desc):
            failed.append(step_id)
            if not args.continue_on_error:
                print(f"\n❌ Step {step_id} failed, stopping.")
                print("  Use --continue-on-error to run the remaining steps.")
                sys.exit(1)

    print("\n" + "="*60)
    if failed:
        print(f"⚠️ Finished with {len(failed)} failed step(s): {', '.join(failed)}")
        sys.exit(1)
    print("✅ All steps complete.")


if __name__ == "__main__":
    main()
