from git_ingest.cli import main_entry

main_entry()
