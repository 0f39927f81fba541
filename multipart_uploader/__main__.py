import sys

from multipart_uploader.cli import main

sys.exit(main())
