from clicumber.cli import main

raise SystemExit(main())
