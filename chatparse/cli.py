import argparse
import asyncio
import logging

from .config import DEFAULT_CONFIG, load_config
from .db import ParserDB
from .errors import DecodingError
from .logic import Parser

log = logging.getLogger(__name__)

PROMPT = "chat-parser> "

HELP = """Type a message to parse it, or one of:
  :config              show settings
  :set KEY VALUE       change a setting
  :reset               restore default settings
  :stats               most seen mentions and emotions
  :clear-stats         forget the stats
  :quit                leave"""


class Shell:
    def __init__(self, db_path="data.db", fetcher=None):
        self.db_path = db_path
        # None means a urllib fetcher built from the stored settings
        self.fetcher = fetcher
        self.reload_config()

    def reload_config(self):
        db = ParserDB(self.db_path)
        self.config = load_config(db)
        db.close()
        self.parser = Parser.from_config(self.config, fetcher=self.fetcher)

    async def handle(self, line):
        """Run one line of input, return the text to print (None to quit)."""
        line = line.strip()
        if not line:
            return ""
        if line.startswith(":"):
            return self.command(line)

        try:
            info = await self.parser.parse(line)
        except DecodingError as e:
            return f"error: {e}"

        db = ParserDB(self.db_path)
        try:
            db.record(info)
        finally:
            db.close()
        return info.to_json()

    def command(self, line):
        name, _, rest = line.partition(" ")

        if name in (":quit", ":q"):
            return None
        if name == ":help":
            return HELP
        if name == ":config":
            return "\n".join(f"{field['label']} ({field['key']}): {self.config[field['key']]}"
                             for field in DEFAULT_CONFIG)
        if name == ":set":
            return self.set_config(rest)
        if name == ":reset":
            db = ParserDB(self.db_path)
            db.reset_config()
            db.close()
            self.reload_config()
            return "settings reset to defaults"
        if name == ":stats":
            return self.stats()
        if name == ":clear-stats":
            db = ParserDB(self.db_path)
            db.clear_stats()
            db.close()
            return "stats cleared"
        return f"unknown command {name}, try :help"

    # Save user config input (resets to default value if type error)
    def set_config(self, rest):
        key, _, value = rest.strip().partition(" ")
        field = next((f for f in DEFAULT_CONFIG if f["key"] == key), None)
        if field is None:
            return f"unknown setting {key!r}"

        try:
            value = field["type"](value.strip())
        except ValueError:
            log.info("Invalid value for %s, using default %r", key, field["default"])
            value = field["default"]

        db = ParserDB(self.db_path)
        db.set_config(key, value)
        db.close()
        self.reload_config()
        return f"{key} = {self.config[key]}"

    def stats(self):
        db = ParserDB(self.db_path)
        lines = []
        for category in ("mentions", "emotions"):
            top = db.get_top(category, limit=self.config["max_stats"])
            lines.append(f"{category.title()}:")
            if top:
                lines.extend(f"  {value}: {count}" for value, count in top)
            else:
                lines.append("  (none)")
        db.close()
        return "\n".join(lines)

    async def run(self):
        while True:
            try:
                line = input(PROMPT)
            except EOFError:
                break
            output = await self.handle(line)
            if output is None:
                break
            if output:
                print(output)


def main(argv=None):
    arg_parser = argparse.ArgumentParser(prog="chatparse", description="Interactive chat message parser.")
    arg_parser.add_argument("--db", default="data.db", help="SQLite file for settings and stats")
    arg_parser.add_argument("--verbose", action="store_true", help="log title lookups")
    args = arg_parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)
    asyncio.run(Shell(args.db).run())


if __name__ == "__main__":
    main()
