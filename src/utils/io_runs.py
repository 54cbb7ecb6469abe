import json
import uuid
from datetime import datetime
from pathlib import Path
import pandas as pd


def save_run(result: dict, folder: str = 'runs') -> str:
    """
    Saves one run as runs/run_<run_id>.json.
    Returns the run_id (timestamp + short uuid).
    """
    Path(folder).mkdir(parents=True, exist_ok=True)
    run_id = datetime.now().strftime('%Y%m%d%H%M%S') + '_' + uuid.uuid4().hex[:6]
    p = Path(folder) / f"run_{run_id}.json"
    with open(p, 'w', encoding='utf-8') as f:
        json.dump(result, f, ensure_ascii=False, indent=2)
    return run_id


def load_runs(files) -> pd.DataFrame:
    """
    Loads many run files (uploaded file objects or paths) into a DataFrame.
    """
    records = []
    for f in files:
        if hasattr(f, 'read'):
            data = json.load(f)
        else:
            data = json.loads(Path(f).read_text(encoding='utf-8'))
        rec = {
            'run_id': data.get('file', '') + '_' + data.get('algo', ''),
            'file': data.get('file', ''),
            'algo': data.get('algo', ''),
            'cities': data.get('cities', 0),
            'distance': data.get('distance', 0),
            'iterations': data.get('iterations'),
            'time_sec': data.get('time_sec', 0)
        }
        records.append(rec)
    df = pd.DataFrame(records, columns=['run_id', 'file', 'algo', 'cities',
                                        'distance', 'iterations', 'time_sec'])
    return df
