import json
import sys

from probes import bundle_from_record, describe_device
from scoring import classify


def _load_records(input_file):
    with open(input_file, 'r', encoding='utf-8') as f:
        data = json.load(f)
    # Either a bare list or an export envelope {"records": [...]}
    if isinstance(data, dict):
        data = data.get("records", [])
    return data


def triage_recorded_probes(input_file, output_file):
    """
    Offline triage of recorded probe reports.
    Classifies every record with the same scorer the browser gate uses
    and writes a report with per-record verdicts plus a summary.
    """
    print(f"Reading {input_file}...")
    records = _load_records(input_file)

    results = []
    skipped = 0

    for idx, record in enumerate(records):
        # --- 1. Shape check ---
        if not isinstance(record, dict):
            skipped += 1
            print(f"[Triage] Skipped record {idx}: not an object")
            continue

        # --- 2. Classify ---
        bundle = bundle_from_record(record)
        verdict = classify(bundle)

        results.append({
            "index": idx,
            "id": record.get("id"),
            "score": verdict["score"],
            "is_emulator": verdict["is_emulator"],
            "reasons": verdict["reasons"],
            "device": describe_device(bundle),
        })

    # --- 3. Summary ---
    flagged = sum(1 for r in results if r["is_emulator"])
    scores = [r["score"] for r in results]
    summary = {
        "total": len(results),
        "flagged": flagged,
        "skipped": skipped,
        "max_score": max(scores) if scores else 0,
        "mean_score": round(sum(scores) / len(scores), 1) if scores else 0.0,
    }

    report = {"summary": summary, "results": results}
    with open(output_file, 'w', encoding='utf-8') as f:
        json.dump(report, f, ensure_ascii=False, indent=2)

    print(f"------------------------------------------------")
    print(f"SUCCESS: Classified {summary['total']} records ({skipped} skipped).")
    print(f"Flagged {flagged} as emulated environments.")
    print(f"Report saved: {output_file}")
    return report

# TRIGGER THE FUNCTION
if __name__ == "__main__":
    args = sys.argv[1:]
    in_file = args[0] if len(args) > 0 else 'probe_records.json'
    out_file = args[1] if len(args) > 1 else 'triage_report.json'
    triage_recorded_probes(in_file, out_file)
