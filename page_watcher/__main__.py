import sys

from page_watcher.main import main


sys.exit(main())
