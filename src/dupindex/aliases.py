from dupindex.core.store import CACHE_ENV_VAR, DEFAULT_INDEX_PATH

USAGE_TEXT = (
    "USAGE : %(prog)s [options] <target_directory>\n"
    "  -c  purges the cache\n"
    "  -s  sorts the files into subdirectories\n"
    "  -z  unzip any zipfiles\n"
    "  -d  deletes duplicates\n"
    "  -v  verbose output, show each file looked at\n"
    "  -p  progress bar\n"
)

CACHE_HELP_TEXT = (
    "Index file location.\n"
    f"Default: ${CACHE_ENV_VAR} if set, else {DEFAULT_INDEX_PATH}"
)

ORGANIZE_HELP_TEXT = (
    "Move every file into <target>/<first two letters of its name>/ before indexing.\n"
    "Example: Report.PDF -> re/Report.PDF"
)

DELETE_HELP_TEXT = (
    "After reporting, keep the lexicographically first path of each duplicate group\n"
    "and move the rest to trash. Only paths below the target directory are considered;\n"
    "files indexed by runs on other directories are reported but never deleted.\n"
    "Always shows preview before deletion for safety."
)

EPILOG_TEXT = """
Examples:
  Index a folder and list duplicates (second run only hashes new files)
  %(prog)s ~/Downloads

  Start from an empty index
  %(prog)s -c ~/Downloads

  Unzip archives, sort files into subdirectories, show progress
  %(prog)s -z -s -p ~/Downloads

  Move duplicates to trash without confirmation (for scripts)
  %(prog)s -d --force ~/Downloads > ~/Downloads/report.txt

  Use a separate index file
  %(prog)s --cache-file ~/photos.dedupcache.json ~/Pictures
"""
