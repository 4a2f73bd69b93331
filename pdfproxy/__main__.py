from pdfproxy.core.gateway import main

main()
