from repo_inventory.scanner.scan import enrich_inventory, init_inventory, scan_one_repo

__all__ = ["enrich_inventory", "init_inventory", "scan_one_repo"]
