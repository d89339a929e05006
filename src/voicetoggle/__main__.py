import sys

from voicetoggle.app import main

sys.exit(main())
