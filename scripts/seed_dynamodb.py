"""Create the sitepay DynamoDB tables and seed a small sample site.

Usage:
    python scripts/seed_dynamodb.py --endpoint-url http://localhost:4566
"""

from __future__ import annotations

import argparse
from decimal import Decimal
from typing import Any

import boto3

from sitepay.persistence.dynamodb_backend import (
    ADVANCES_TABLE,
    CONFIG_KEY,
    CONFIG_TABLE,
    DIRECTORY_TABLE,
    REPORTS_TABLE,
    TABLE_NAMES,
    advance_key,
    directory_key,
    report_key,
)

SAMPLE_COMPANIES: list[dict[str, Any]] = [
    {"id": "c-build", "name": "한빛건설", "type": "시공사"},
    {"id": "c-partner", "name": "대성기공(주)", "type": "협력사"},
]

SAMPLE_TEAMS: list[dict[str, Any]] = [
    {"id": "t-main", "name": "본팀", "type": "본팀", "companyId": "c-build", "companyName": "한빛건설"},
    {"id": "t-sub", "name": "형틀1팀", "type": "새끼팀", "companyId": "c-build", "parentTeamId": "t-main"},
    {
        "id": "t-support", "name": "대성 지원팀", "type": "지원팀",
        "companyId": "c-partner", "companyName": "대성기공(주)",
        "supportRate": 250000, "supportModel": "man_day", "leaderId": "w-leader",
    },
]

SAMPLE_WORKERS: list[dict[str, Any]] = [
    {
        "id": "w-kim", "name": "김철수", "teamId": "t-main", "teamType": "본팀",
        "companyId": "c-build", "unitPrice": 150000, "bankName": "국민은행",
        "accountNumber": "123456789012", "accountHolder": "김철수",
    },
    {
        "id": "w-lee", "name": "이영희", "teamId": "t-main", "teamType": "본팀",
        "companyId": "c-build", "unitPrice": 120000, "salaryModel": "월급제",
        "bankName": "신한", "accountNumber": "110222333444", "accountHolder": "이영희",
    },
    {
        "id": "w-park", "name": "박지원", "teamId": "t-support", "teamType": "지원팀",
        "companyId": "c-partner", "unitPrice": 0,
    },
    {
        "id": "w-leader", "name": "최반장", "teamId": "t-support", "teamType": "지원팀",
        "companyId": "c-partner", "bankName": "농협", "accountNumber": "3020000111122",
        "accountHolder": "최반장",
    },
]

SAMPLE_REPORTS: list[dict[str, Any]] = [
    {"reportId": "r-0301", "date": "2024-03-01", "siteId": "s-1", "teamId": "t-main", "workerId": "w-kim", "manDay": 1},
    {"reportId": "r-0301", "date": "2024-03-01", "siteId": "s-1", "teamId": "t-main", "workerId": "w-lee", "manDay": 1,
     "salaryModel": "월급제"},
    {"reportId": "r-0301", "date": "2024-03-01", "siteId": "s-1", "teamId": "t-support", "workerId": "w-park",
     "manDay": 1},
    {"reportId": "r-0302", "date": "2024-03-02", "siteId": "s-1", "teamId": "t-main", "workerId": "w-kim",
     "manDay": 0.5},
]

SAMPLE_ADVANCES: list[dict[str, Any]] = [
    {"workerId": "w-lee", "teamId": "t-main", "yearMonth": "2024-03", "accommodation": 200000, "gloves": 5000},
]


def create_tables(ddb: Any, suffix: str = "") -> None:
    """Create the four sitepay tables. Skips tables that already exist."""
    client = ddb.meta.client
    existing = client.list_tables().get("TableNames", [])

    for name in TABLE_NAMES:
        table_name = f"{name}{suffix}"
        if table_name in existing:
            print(f"  Table {table_name} already exists, skipping")
            continue
        client.create_table(
            TableName=table_name,
            KeySchema=[
                {"AttributeName": "PK", "KeyType": "HASH"},
                {"AttributeName": "SK", "KeyType": "RANGE"},
            ],
            AttributeDefinitions=[
                {"AttributeName": "PK", "AttributeType": "S"},
                {"AttributeName": "SK", "AttributeType": "S"},
            ],
            BillingMode="PAY_PER_REQUEST",
        )
        print(f"  Created table {table_name}")


def _to_dynamodb(obj: Any) -> Any:
    """Convert floats/ints to Decimal for DynamoDB."""
    if isinstance(obj, bool):
        return obj
    if isinstance(obj, (int, float)):
        return Decimal(str(obj))
    if isinstance(obj, dict):
        return {k: _to_dynamodb(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_to_dynamodb(i) for i in obj]
    return obj


def seed_sample_data(ddb: Any, suffix: str = "") -> None:
    """Seed companies, teams, workers, one month of reports and an advance record."""
    tbl = ddb.Table(f"{DIRECTORY_TABLE}{suffix}")
    with tbl.batch_writer() as batch:
        for kind, records in (("COMPANY", SAMPLE_COMPANIES), ("TEAM", SAMPLE_TEAMS), ("WORKER", SAMPLE_WORKERS)):
            for record in records:
                batch.put_item(Item=_to_dynamodb({**directory_key(kind, record["id"]), **record}))
    print(f"  Seeded {len(SAMPLE_COMPANIES)} companies, {len(SAMPLE_TEAMS)} teams, {len(SAMPLE_WORKERS)} workers")

    tbl = ddb.Table(f"{REPORTS_TABLE}{suffix}")
    with tbl.batch_writer() as batch:
        for entry in SAMPLE_REPORTS:
            key = report_key(entry["date"], entry["reportId"], entry["workerId"])
            batch.put_item(Item=_to_dynamodb({**key, **entry}))
    print(f"  Seeded {len(SAMPLE_REPORTS)} report entries")

    tbl = ddb.Table(f"{ADVANCES_TABLE}{suffix}")
    with tbl.batch_writer() as batch:
        for record in SAMPLE_ADVANCES:
            key = advance_key(record["yearMonth"], record["teamId"], record["workerId"])
            batch.put_item(Item=_to_dynamodb({**key, **record}))
    print(f"  Seeded {len(SAMPLE_ADVANCES)} advance records")

    tbl = ddb.Table(f"{CONFIG_TABLE}{suffix}")
    tbl.put_item(Item=_to_dynamodb({
        **CONFIG_KEY,
        "insuranceConfig": {
            "pensionRate": 0.045, "healthRate": 0.03545,
            "careRateOfHealth": 0.1295, "employmentRate": 0.009, "thresholdDays": 8,
        },
        "taxRate": 0.033,
    }))
    print("  Seeded payroll config")


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed DynamoDB tables for sitepay")
    parser.add_argument("--endpoint-url", default=None, help="DynamoDB endpoint (e.g. http://localhost:4566)")
    parser.add_argument("--table-suffix", default="", help="Table name suffix (e.g. -dev)")
    parser.add_argument("--region", default="ap-northeast-2", help="AWS region")
    args = parser.parse_args()

    kwargs: dict[str, Any] = {"region_name": args.region}
    if args.endpoint_url:
        kwargs["endpoint_url"] = args.endpoint_url

    ddb = boto3.resource("dynamodb", **kwargs)

    print("Creating tables...")
    create_tables(ddb, suffix=args.table_suffix)

    print("Seeding data...")
    seed_sample_data(ddb, suffix=args.table_suffix)

    print("Done!")


if __name__ == "__main__":
    main()
