import sys
import time

from dirwatcher import DirectoryWatchable, DirectoryWatcher


class SimpleDemo(DirectoryWatchable):
    def on_change_detected(self, event):
        # what kind of change happened:
        print(event.kind.name)
        # which file it refers to:
        print(event.path)
        # when it was detected:
        print(event.when_as_string())
        # or everything at once:
        print(event)


# Watch the directory given on the command line (or the current one).
watcher = DirectoryWatcher(sys.argv[1] if len(sys.argv) > 1 else ".", SimpleDemo())
watcher.start()

try:
    while True:
        time.sleep(1)
except KeyboardInterrupt:
    watcher.stop()
