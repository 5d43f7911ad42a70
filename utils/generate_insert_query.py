#!/usr/bin/env python3
"""
Script to generate SQL INSERT queries for the sites table.

Every generated site points at the local mock server (see mock_server.py) and
uses one of its behaviours, so that a fresh database immediately produces a
mix of healthy, failing, flapping and slow sites:
- id is not provided (it's SERIAL)
- url is http://localhost:8080/{behaviour}/{uuid4()}
- check_interval is between 10 and 120 seconds
- notifications go to the number given on the command line, if any

The generated query is written to a file named 'insert_sites.sql'.
"""

import random
import sys
from pathlib import Path
from uuid import uuid4

# Number of rows to insert
ROWS_TO_INSERT = 50

BEHAVIOURS = ["ok", "fail", "flap", "slow"]


def generate_check_interval() -> int:
    """Generate a random interval between 10 and 120 seconds."""
    return random.randint(10, 120)


def quote(value: str) -> str:
    """Quote a value as an SQL string literal."""
    return "'" + value.replace("'", "''") + "'"


def generate_insert_query(notify_target: str = "") -> str:
    """Generate a multi-insert query for the sites table.

    Args:
        notify_target: Phone number that receives the alerts of every site.

    Returns:
        str: A SQL query string containing a multi-row INSERT statement.
    """
    values_list = []

    for index in range(ROWS_TO_INSERT):
        behaviour = random.choice(BEHAVIOURS)
        name = quote(f"{behaviour.title()} site {index + 1}")
        url = quote(f"http://localhost:8080/{behaviour}/{uuid4()}")
        values_list.append(
            f"({name}, {url}, {generate_check_interval()}, 'personal', {quote(notify_target)})"
        )

    all_values = ",\n    ".join(values_list)

    return f"""-- Insert monitored sites
INSERT INTO sites (name, url, check_interval, notify_type, notify_target)
VALUES
    {all_values};
"""


def main() -> None:
    """Generate the SQL query and save it to 'insert_sites.sql'."""
    notify_target = sys.argv[1] if len(sys.argv) > 1 else ""
    query = generate_insert_query(notify_target)

    output_file = Path("insert_sites.sql")
    with open(output_file, "w") as f:
        f.write(query)

    print(f"SQL query with {ROWS_TO_INSERT} sites has been generated and saved to {output_file}")


if __name__ == "__main__":
    main()
