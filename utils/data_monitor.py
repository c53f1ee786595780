# utils/data_monitor.py
import asyncio
import os
import time
import logging

from tracker.write_buffer import read_json_file


def _timed_read(dataset):
    start = time.perf_counter()
    read_json_file(dataset.path, dataset.validator)
    return (time.perf_counter() - start) * 1000


def collect_performance(context):
    """
    Check data file health. Blocking; safe to call from the health-server thread.
    context: Instance of TrackerContext
    """
    results = {"datasets": {}}
    try:
        for engine in context.engines:
            ds = engine.dataset
            read_ms = _timed_read(ds)
            results["datasets"][ds.name] = {
                "read_ms": round(read_ms, 2),
                "size_kb": round(os.path.getsize(ds.path) / 1024, 1) if os.path.exists(ds.path) else 0,
                "state": engine.state.value,
                "last_error": engine.last_error,
            }

        results["backups"] = len(context.backups.list_backups())
        results["metadata_cache"] = len(context.metadata)

        slow = any(d["read_ms"] > 100 for d in results["datasets"].values())
        failing = any(d["last_error"] for d in results["datasets"].values())
        results["status"] = "Degraded" if slow or failing else "Healthy"
        return results

    except Exception as e:
        logging.error(f"❌ Data Monitoring Error: {e}")
        return {"status": "Critical", "error": str(e)}


async def check_performance(context):
    return await asyncio.to_thread(collect_performance, context)


def format_report(metrics):
    """Turn collected metrics into a human-readable data health report"""
    report = "📊 **Data Health Report**\n\n"
    for name, ds in metrics.get("datasets", {}).items():
        report += f"🔹 **{name}:** `{ds['read_ms']}ms` read, `{ds['size_kb']}KB`, state `{ds['state']}`\n"
    report += f"🔹 **Backups:** `{metrics.get('backups', 'N/A')}`\n"
    report += f"🔹 **Cached groups:** `{metrics.get('metadata_cache', 'N/A')}`\n"
    report += f"🔹 **System Status:** `{'✅' if metrics.get('status') == 'Healthy' else '⚠️'} {metrics.get('status')}`\n"

    if metrics.get("error"):
        report += f"\n> Error: {metrics['error']}"

    return report


async def get_performance_report(context):
    return format_report(await check_performance(context))
