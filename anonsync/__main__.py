from anonsync.main import main

raise SystemExit(main())
