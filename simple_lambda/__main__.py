import sys

from simple_lambda.cli import main

sys.exit(main())
