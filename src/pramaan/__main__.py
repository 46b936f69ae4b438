from pramaan.cli import main

raise SystemExit(main())
